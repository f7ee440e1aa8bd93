# codesync/state/schema.py
"""
Persisted sync state.

A RepositorySyncRecord is the last state the vector index is known to
reflect: the Merkle tree it was built from and the chunk ids stored per
file. It is written only after the index accepted the corresponding writes.

embedding_id and chunker_id are stored so that a configuration change
forces a full re-index on the next run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from codesync.merkle.tree import MerkleTree


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RecordStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"


class RepositorySyncRecord(BaseModel):
    """Last successfully synced state of one codebase."""

    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1, description="Schema version for migrations")
    codebase_id: str = Field(..., description="Stable id scoping this repository's vectors")
    full_name: str = Field(..., description="owner/name, or a local path")
    owner: str = Field(default="")
    name: str = Field(default="")
    source: str = Field(default="github", description="Repository collaborator kind")
    branch: Optional[str] = Field(default=None, description="Synced branch")
    last_commit: Optional[str] = Field(default=None, description="Commit the index reflects")
    tree: Dict[str, Any] = Field(..., description="Serialized MerkleTree")
    file_chunks: Dict[str, List[str]] = Field(
        default_factory=dict, description="Chunk ids stored per file path"
    )
    files_count: int = Field(default=0)
    chunks_count: int = Field(default=0)
    embedding_id: Optional[str] = Field(default=None, description="provider:model:dimension")
    chunker_id: Optional[str] = Field(default=None)
    webhook_id: Optional[int] = Field(default=None)
    webhook_secret: Optional[str] = Field(default=None, description="Per-repository HMAC secret")
    status: RecordStatus = Field(default=RecordStatus.ACTIVE)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def merkle_tree(self) -> MerkleTree:
        return MerkleTree.from_dict(self.tree)

    @property
    def root_hash(self) -> Optional[str]:
        return self.tree.get("root_hash")

    def summary(self) -> Dict[str, Any]:
        """Public view: no secrets, no per-file detail."""
        return {
            "codebase_id": self.codebase_id,
            "full_name": self.full_name,
            "branch": self.branch,
            "last_commit": self.last_commit,
            "root_hash": self.root_hash,
            "files_count": self.files_count,
            "chunks_count": self.chunks_count,
            "status": self.status.value,
            "webhook_registered": self.webhook_id is not None,
            "updated_at": self.updated_at.isoformat(),
        }


class WebhookEventStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class WebhookEventLog(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    codebase_id: str
    event_type: str
    delivery_id: Optional[str] = None
    branch: Optional[str] = None
    commits: int = 0
    job_id: Optional[str] = None
    changes_detected: int = 0
    files_reindexed: int = 0
    processing_seconds: float = 0.0
    status: WebhookEventStatus = WebhookEventStatus.PROCESSING
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)


__all__ = ["RecordStatus", "RepositorySyncRecord", "WebhookEventLog", "WebhookEventStatus"]
