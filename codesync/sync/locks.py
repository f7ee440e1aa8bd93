# codesync/sync/locks.py
"""At most one active sync per codebase."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Set

from codesync.core.exceptions import SyncInProgressError


class RepositoryLocks:
    """
    Set of codebase ids with a sync in flight.

    acquire() never waits: a second request for a busy codebase is rejected
    with SyncInProgressError.
    """

    def __init__(self) -> None:
        self._active: Set[str] = set()
        self._guard = threading.Lock()

    def acquire(self, codebase_id: str) -> None:
        with self._guard:
            if codebase_id in self._active:
                raise SyncInProgressError(codebase_id)
            self._active.add(codebase_id)

    def release(self, codebase_id: str) -> None:
        with self._guard:
            self._active.discard(codebase_id)

    def is_locked(self, codebase_id: str) -> bool:
        return codebase_id in self._active

    def active(self) -> Set[str]:
        return set(self._active)

    @contextmanager
    def hold(self, codebase_id: str) -> Iterator[None]:
        self.acquire(codebase_id)
        try:
            yield
        finally:
            self.release(codebase_id)


__all__ = ["RepositoryLocks"]
