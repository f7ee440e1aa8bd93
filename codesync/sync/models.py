# codesync/sync/models.py
"""Inputs and outputs of one sync run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from codesync.repository.base import RepositoryClient


class SyncOutcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    NO_CHANGES = "no_changes"


@dataclass
class SyncRequest:
    """
    What to sync.

    Attributes:
        codebase_id: Scope of every vector and of the sync record
        repository: Collaborator to read the snapshot from
        full_name: owner/name, or a directory for local syncs
        branch: Ref to sync; None means the repository's default
        force: Diff against an empty tree so every file is re-indexed
        trigger: "manual", "webhook" or "cli"
    """

    codebase_id: str
    repository: RepositoryClient
    full_name: str
    owner: str = ""
    name: str = ""
    branch: Optional[str] = None
    force: bool = False
    trigger: str = "manual"


@dataclass
class SyncResult:
    outcome: SyncOutcome
    codebase_id: str
    changes_detected: int = 0
    files_reindexed: int = 0
    files_deleted: int = 0
    files_failed: int = 0
    chunks_embedded: int = 0
    chunks_reused: int = 0
    vectors_upserted: int = 0
    vectors_deleted: int = 0
    new_root_hash: Optional[str] = None
    commit: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def is_partial(self) -> bool:
        return self.outcome == SyncOutcome.PARTIAL

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data

    def __str__(self) -> str:
        return (
            f"{self.outcome.value}: {self.changes_detected} changes, "
            f"{self.files_reindexed} reindexed, {self.files_deleted} deleted, "
            f"{self.chunks_embedded} embedded ({self.chunks_reused} reused), "
            f"{self.vectors_upserted} upserted, {self.vectors_deleted} removed, "
            f"{len(self.errors)} errors"
        )


__all__ = ["SyncOutcome", "SyncRequest", "SyncResult"]
