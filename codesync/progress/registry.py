# codesync/progress/registry.py
"""
Process-wide job registry for sync progress.

Jobs are inserted when a sync is accepted, updated by the orchestrator
through ProgressEvents, read by polling clients, and evicted once they have
been terminal for longer than retention_seconds.

JobRegistry is the seam for a shared backend (several API instances); the
in-memory implementation is the only one shipped.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from codesync.core.exceptions import SyncInProgressError
from codesync.logging.logger import get_logger
from codesync.logging.tags import PROGRESS
from codesync.progress.phases import SyncPhase, check_transition

logger = get_logger(__name__)

Clock = Callable[[], float]


def _iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@dataclass
class ProgressEvent:
    """
    One observation emitted by the orchestrator.

    processed/total count the work units (chunks or files) of the current
    phase and feed the remaining-time estimate.
    """

    job_id: str
    codebase_id: str
    phase: SyncPhase
    progress: int
    message: str = ""
    processed: int = 0
    total: int = 0
    error: Optional[str] = None
    counts: Dict[str, int] = field(default_factory=dict)


@dataclass
class SyncJob:
    id: str
    codebase_id: str
    phase: SyncPhase = SyncPhase.IDLE
    progress: int = 0
    message: str = "Queued"
    errors: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    trigger: str = "manual"
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    estimated_seconds_remaining: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.id,
            "codebase_id": self.codebase_id,
            "phase": self.phase.value,
            "progress": self.progress,
            "message": self.message,
            "errors": list(self.errors),
            "counts": dict(self.counts),
            "result": self.result,
            "trigger": self.trigger,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "finished_at": _iso(self.finished_at),
            "estimated_seconds_remaining": self.estimated_seconds_remaining,
        }


@runtime_checkable
class JobRegistry(Protocol):
    def create(self, codebase_id: str, trigger: str = "manual") -> SyncJob: ...

    def get(self, job_id: str) -> Optional[SyncJob]: ...

    def update(self, event: ProgressEvent) -> SyncJob: ...

    def finish(
        self,
        job_id: str,
        phase: SyncPhase,
        message: str,
        result: Optional[Dict[str, Any]] = None,
        errors: Optional[List[str]] = None,
    ) -> SyncJob: ...

    def list(self, codebase_id: Optional[str] = None) -> List[SyncJob]: ...

    def delete(self, job_id: str) -> bool: ...

    def evict_expired(self) -> int: ...


class InMemoryJobRegistry:
    """
    Thread-safe dict of jobs.

    Progress never decreases: an update with a lower percentage keeps the
    current one. Phase changes are checked against the phase machine.
    """

    def __init__(self, retention_seconds: float = 3600.0, clock: Optional[Clock] = None) -> None:
        self.retention_seconds = retention_seconds
        self._clock = clock or time.time
        self._jobs: Dict[str, SyncJob] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def create(self, codebase_id: str, trigger: str = "manual") -> SyncJob:
        self.evict_expired()
        now = self._clock()
        job = SyncJob(
            id=uuid.uuid4().hex,
            codebase_id=codebase_id,
            trigger=trigger,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._jobs[job.id] = job
        logger.debug(f"{PROGRESS} Created job {job.id} for {codebase_id} ({trigger})")
        return job

    def get(self, job_id: str) -> Optional[SyncJob]:
        return self._jobs.get(job_id)

    def _require(self, job_id: str) -> SyncJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(f"Unknown job: {job_id}")
        return job

    def update(self, event: ProgressEvent) -> SyncJob:
        """
        Apply an orchestrator event.

        Raises:
            KeyError: Unknown job id
            InvalidTransitionError: The event's phase is not reachable
        """
        with self._lock:
            job = self._require(event.job_id)
            check_transition(job.phase, event.phase)
            now = self._clock()

            job.phase = event.phase
            job.progress = max(job.progress, min(int(event.progress), 100))
            if event.message:
                job.message = event.message
            if event.error:
                job.errors.append(event.error)
            job.counts.update(event.counts)
            job.updated_at = now
            job.estimated_seconds_remaining = self._estimate(job, event, now)
            return job

    def _estimate(self, job: SyncJob, event: ProgressEvent, now: float) -> Optional[float]:
        if event.total <= 0 or event.processed <= 0:
            return job.estimated_seconds_remaining
        elapsed = now - job.created_at
        if elapsed <= 0:
            return None
        rate = event.processed / elapsed
        return round(max(event.total - event.processed, 0) / rate, 1)

    def finish(
        self,
        job_id: str,
        phase: SyncPhase,
        message: str,
        result: Optional[Dict[str, Any]] = None,
        errors: Optional[List[str]] = None,
    ) -> SyncJob:
        """
        Move a job to COMPLETE or ERROR.

        Raises:
            ValueError: phase is not terminal
        """
        if not phase.is_terminal:
            raise ValueError(f"finish() needs a terminal phase, got '{phase.value}'")

        with self._lock:
            job = self._require(job_id)
            check_transition(job.phase, phase)
            now = self._clock()
            job.phase = phase
            if phase == SyncPhase.COMPLETE:
                job.progress = 100
            job.message = message
            for error in errors or []:
                if error not in job.errors:
                    job.errors.append(error)
            job.result = result
            job.updated_at = now
            job.finished_at = now
            job.estimated_seconds_remaining = 0.0

        logger.info(f"{PROGRESS} Job {job_id} finished: {phase.value} ({message})")
        return job

    def list(self, codebase_id: Optional[str] = None) -> List[SyncJob]:
        self.evict_expired()
        jobs = sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)
        if codebase_id is not None:
            jobs = [j for j in jobs if j.codebase_id == codebase_id]
        return jobs

    def delete(self, job_id: str) -> bool:
        """
        Forget a finished job. Returns False for an unknown id.

        Raises:
            SyncInProgressError: The job has not reached a terminal phase
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            if not job.is_terminal:
                raise SyncInProgressError(job.codebase_id)
            del self._jobs[job_id]
            return True

    def evict_expired(self) -> int:
        """Drop terminal jobs older than retention_seconds. Returns the count."""
        cutoff = self._clock() - self.retention_seconds
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.finished_at is not None and job.finished_at <= cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]
        if expired:
            logger.debug(f"{PROGRESS} Evicted {len(expired)} finished jobs")
        return len(expired)


__all__ = ["InMemoryJobRegistry", "JobRegistry", "ProgressEvent", "SyncJob"]
