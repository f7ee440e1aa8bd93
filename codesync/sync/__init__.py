# codesync/sync/__init__.py
from codesync.sync.locks import RepositoryLocks
from codesync.sync.models import SyncOutcome, SyncRequest, SyncResult
from codesync.sync.orchestrator import SyncOrchestrator

__all__ = ["RepositoryLocks", "SyncOrchestrator", "SyncOutcome", "SyncRequest", "SyncResult"]
