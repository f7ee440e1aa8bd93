# codesync/api/models/__init__.py
"""API request and response models."""

from codesync.api.models.schemas import (
    HealthResponse,
    JobList,
    JobStatus,
    RepositoryInfo,
    SyncAccepted,
    SyncRequestBody,
    VectorsDeleted,
    WebhookEventInfo,
    WebhookEventList,
    WebhookRegistered,
    WebhookResponse,
)

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
