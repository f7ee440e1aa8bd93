# codesync/state/__init__.py
from codesync.state.schema import RecordStatus, RepositorySyncRecord, WebhookEventLog, WebhookEventStatus
from codesync.state.store import InMemorySyncStateStore, JsonSyncStateStore, SyncStateStore

__all__ = [
    "InMemorySyncStateStore",
    "JsonSyncStateStore",
    "RecordStatus",
    "RepositorySyncRecord",
    "SyncStateStore",
    "WebhookEventLog",
    "WebhookEventStatus",
]
