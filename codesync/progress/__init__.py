# codesync/progress/__init__.py
from codesync.progress.phases import SyncPhase, check_transition, phase_progress
from codesync.progress.registry import InMemoryJobRegistry, JobRegistry, ProgressEvent, SyncJob

__all__ = [
    "InMemoryJobRegistry",
    "JobRegistry",
    "ProgressEvent",
    "SyncJob",
    "SyncPhase",
    "check_transition",
    "phase_progress",
]
