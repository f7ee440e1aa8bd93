# codesync/api/dependencies.py
"""Shared dependencies for API routes."""

from __future__ import annotations

from functools import lru_cache

from codesync.service import SyncService


@lru_cache(maxsize=1)
def get_service() -> SyncService:
    """
    Process-wide service built from the workspace config.

    Tests replace it through app.dependency_overrides[get_service].
    """
    return SyncService.from_config()


def get_codesync_version() -> str:
    from codesync import __version__

    return __version__


__all__ = ["get_codesync_version", "get_service"]
