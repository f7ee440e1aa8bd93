# codesync/api/models/schemas.py
"""Pydantic models for API requests and responses."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SyncRequestBody(BaseModel):
    """Request to sync a GitHub repository."""

    owner: str = Field(..., description="Repository owner", min_length=1)
    name: str = Field(..., description="Repository name", min_length=1)
    branch: Optional[str] = Field(None, description="Branch to sync; defaults to the repository default")
    force: bool = Field(False, description="Re-index every file regardless of the last sync")


class SyncAccepted(BaseModel):
    job_id: str = Field(..., description="Poll /progress/{job_id} for status")
    codebase_id: str
    status: str = Field("accepted")


class JobStatus(BaseModel):
    """Progress of one sync job."""

    job_id: str
    codebase_id: str
    phase: str = Field(..., description="idle, fetching, diffing, chunking, embedding, upserting, complete or error")
    progress: int = Field(..., ge=0, le=100)
    message: str
    errors: List[str] = Field(default_factory=list)
    counts: Dict[str, int] = Field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    trigger: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    finished_at: Optional[str] = None
    estimated_seconds_remaining: Optional[float] = None


class JobList(BaseModel):
    jobs: List[JobStatus] = Field(default_factory=list)


class WebhookResponse(BaseModel):
    status: str
    reason: Optional[str] = None
    job_id: Optional[str] = None


class WebhookEventInfo(BaseModel):
    id: str
    event_type: str
    delivery_id: Optional[str] = None
    branch: Optional[str] = None
    commits: int = 0
    job_id: Optional[str] = None
    changes_detected: int = 0
    files_reindexed: int = 0
    processing_seconds: float = 0.0
    status: str
    error: Optional[str] = None
    timestamp: str


class WebhookEventList(BaseModel):
    codebase_id: str
    events: List[WebhookEventInfo] = Field(default_factory=list)


class RepositoryInfo(BaseModel):
    """Summary of a repository's last sync."""

    codebase_id: str
    full_name: str
    branch: Optional[str] = None
    last_commit: Optional[str] = None
    root_hash: Optional[str] = None
    files_count: int = 0
    chunks_count: int = 0
    status: str
    webhook_registered: bool = False
    syncing: bool = False
    updated_at: str


class WebhookRegistered(BaseModel):
    codebase_id: str
    webhook_id: int


class VectorsDeleted(BaseModel):
    codebase_id: str
    deleted: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="healthy or degraded")
    version: str
    vector_index: Dict[str, Any] = Field(default_factory=dict)
    active_syncs: int = 0


__all__ = [
    "HealthResponse",
    "JobList",
    "JobStatus",
    "RepositoryInfo",
    "SyncAccepted",
    "SyncRequestBody",
    "VectorsDeleted",
    "WebhookEventInfo",
    "WebhookEventList",
    "WebhookRegistered",
    "WebhookResponse",
]
