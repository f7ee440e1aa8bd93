# tests/test_progress.py
"""
Tests for the phase machine, job registry and repository locks.

Key tests:
- test_no_changes_exit: DIFFING may jump straight to COMPLETE
- test_progress_never_decreases: Late or out-of-order updates keep the high-water mark
- test_eta_from_rate: Remaining time is projected from processed units
- test_evicts_after_retention: Finished jobs disappear after the retention window
"""

from __future__ import annotations

import pytest

from codesync.core.exceptions import InvalidTransitionError, SyncInProgressError
from codesync.progress.phases import SyncPhase, can_transition, check_transition, phase_progress
from codesync.progress.registry import InMemoryJobRegistry, JobRegistry, ProgressEvent
from codesync.sync.locks import RepositoryLocks
from codesync.sync.models import SyncOutcome, SyncResult

pytestmark = pytest.mark.tier1


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def event(job, phase, progress, **kwargs) -> ProgressEvent:
    return ProgressEvent(job_id=job.id, codebase_id=job.codebase_id, phase=phase, progress=progress, **kwargs)


class TestPhases:
    """Tests for the allowed transitions."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (SyncPhase.IDLE, SyncPhase.FETCHING),
            (SyncPhase.FETCHING, SyncPhase.DIFFING),
            (SyncPhase.DIFFING, SyncPhase.CHUNKING),
            (SyncPhase.CHUNKING, SyncPhase.EMBEDDING),
            (SyncPhase.EMBEDDING, SyncPhase.UPSERTING),
            (SyncPhase.UPSERTING, SyncPhase.COMPLETE),
            (SyncPhase.EMBEDDING, SyncPhase.EMBEDDING),
        ],
    )
    def test_forward(self, current, target):
        assert can_transition(current, target)
        check_transition(current, target)

    def test_no_changes_exit(self):
        assert can_transition(SyncPhase.DIFFING, SyncPhase.COMPLETE)

    @pytest.mark.parametrize("phase", [p for p in SyncPhase if not p.is_terminal])
    def test_error_from_any_active_phase(self, phase):
        check_transition(phase, SyncPhase.ERROR)

    @pytest.mark.parametrize(
        "current,target",
        [
            (SyncPhase.IDLE, SyncPhase.EMBEDDING),
            (SyncPhase.EMBEDDING, SyncPhase.CHUNKING),
            (SyncPhase.CHUNKING, SyncPhase.COMPLETE),
            (SyncPhase.COMPLETE, SyncPhase.ERROR),
            (SyncPhase.ERROR, SyncPhase.FETCHING),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidTransitionError):
            check_transition(current, target)

    def test_phase_progress_bounds(self):
        assert phase_progress(SyncPhase.FETCHING) == 5
        assert phase_progress(SyncPhase.DIFFING) == 15
        assert phase_progress(SyncPhase.CHUNKING, 0, 10) == 20
        assert phase_progress(SyncPhase.CHUNKING, 10, 10) == 35
        assert phase_progress(SyncPhase.EMBEDDING, 1, 2) == 52
        assert phase_progress(SyncPhase.UPSERTING, 50, 10) == 95
        assert phase_progress(SyncPhase.COMPLETE) == 100


class TestJobRegistry:
    """Tests for InMemoryJobRegistry."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def registry(self, clock):
        return InMemoryJobRegistry(retention_seconds=60, clock=clock)

    def test_protocol(self, registry):
        assert isinstance(registry, JobRegistry)

    def test_create(self, registry):
        job = registry.create("cb", trigger="webhook")

        assert registry.get(job.id) is job
        assert job.phase == SyncPhase.IDLE
        assert job.progress == 0
        assert job.to_dict()["trigger"] == "webhook"
        assert len(registry) == 1

    def test_update(self, registry):
        job = registry.create("cb")
        registry.update(event(job, SyncPhase.FETCHING, 5, message="Fetching"))
        registry.update(event(job, SyncPhase.DIFFING, 15, counts={"files": 3}))

        assert job.phase == SyncPhase.DIFFING
        assert job.progress == 15
        assert job.message == "Fetching"
        assert job.counts == {"files": 3}

    def test_progress_never_decreases(self, registry):
        job = registry.create("cb")
        for phase, progress in [(SyncPhase.FETCHING, 5), (SyncPhase.DIFFING, 15), (SyncPhase.CHUNKING, 30)]:
            registry.update(event(job, phase, progress))
        registry.update(event(job, SyncPhase.CHUNKING, 22))

        assert job.progress == 30

    def test_progress_clamped(self, registry):
        job = registry.create("cb")
        registry.update(event(job, SyncPhase.FETCHING, 250))
        assert job.progress == 100

    def test_invalid_transition(self, registry):
        job = registry.create("cb")
        with pytest.raises(InvalidTransitionError):
            registry.update(event(job, SyncPhase.UPSERTING, 80))
        assert job.phase == SyncPhase.IDLE

    def test_unknown_job(self, registry):
        with pytest.raises(KeyError):
            registry.update(ProgressEvent(job_id="nope", codebase_id="cb", phase=SyncPhase.FETCHING, progress=5))

    def test_error_events_collected(self, registry):
        job = registry.create("cb")
        registry.update(event(job, SyncPhase.FETCHING, 5, error="src/a.py: boom"))
        registry.finish(job.id, SyncPhase.ERROR, "failed", errors=["src/a.py: boom", "fatal"])

        assert job.errors == ["src/a.py: boom", "fatal"]
        assert job.progress == 5

    def test_eta_from_rate(self, registry, clock):
        job = registry.create("cb")
        clock.now += 10
        registry.update(event(job, SyncPhase.FETCHING, 5))
        assert job.estimated_seconds_remaining is None

        registry.update(event(job, SyncPhase.DIFFING, 15))
        registry.update(event(job, SyncPhase.CHUNKING, 20))
        registry.update(event(job, SyncPhase.EMBEDDING, 40, processed=20, total=60))

        # 20 units in 10s, 40 to go
        assert job.estimated_seconds_remaining == 20.0

    def test_finish(self, registry, clock):
        job = registry.create("cb")
        registry.update(event(job, SyncPhase.FETCHING, 5))
        registry.update(event(job, SyncPhase.DIFFING, 15))
        clock.now += 3
        registry.finish(job.id, SyncPhase.COMPLETE, "No changes", result={"outcome": "no_changes"})

        data = job.to_dict()
        assert data["phase"] == "complete"
        assert data["progress"] == 100
        assert data["result"] == {"outcome": "no_changes"}
        assert data["finished_at"] is not None
        assert data["estimated_seconds_remaining"] == 0.0

    def test_finish_needs_terminal_phase(self, registry):
        job = registry.create("cb")
        with pytest.raises(ValueError):
            registry.finish(job.id, SyncPhase.EMBEDDING, "nope")

    def test_finished_job_is_frozen(self, registry):
        job = registry.create("cb")
        registry.finish(job.id, SyncPhase.ERROR, "boom")
        with pytest.raises(InvalidTransitionError):
            registry.update(event(job, SyncPhase.FETCHING, 5))

    def test_evicts_after_retention(self, registry, clock):
        done = registry.create("cb")
        running = registry.create("cb")
        registry.finish(done.id, SyncPhase.ERROR, "boom")

        clock.now += 59
        assert registry.evict_expired() == 0
        clock.now += 1
        assert registry.evict_expired() == 1

        assert registry.get(done.id) is None
        assert registry.get(running.id) is running

    def test_list_and_delete(self, registry, clock):
        first = registry.create("a")
        clock.now += 1
        second = registry.create("b")
        clock.now += 1
        third = registry.create("a")

        assert [j.id for j in registry.list()] == [third.id, second.id, first.id]
        assert [j.id for j in registry.list("a")] == [third.id, first.id]
        registry.finish(second.id, SyncPhase.ERROR, "boom")
        assert registry.delete(second.id) is True
        assert registry.delete(second.id) is False
        assert len(registry) == 2

    def test_running_job_not_deleted(self, registry):
        job = registry.create("cb")
        registry.update(event(job, SyncPhase.FETCHING, 5))

        with pytest.raises(SyncInProgressError):
            registry.delete(job.id)

        assert registry.get(job.id) is job
        registry.update(event(job, SyncPhase.DIFFING, 15))
        assert job.phase == SyncPhase.DIFFING


class TestRepositoryLocks:
    def test_second_acquire_rejected(self):
        locks = RepositoryLocks()
        locks.acquire("cb")

        with pytest.raises(SyncInProgressError):
            locks.acquire("cb")
        locks.acquire("other")
        assert locks.active() == {"cb", "other"}

    def test_release(self):
        locks = RepositoryLocks()
        locks.acquire("cb")
        locks.release("cb")
        locks.release("cb")

        assert not locks.is_locked("cb")

    def test_hold_releases_on_error(self):
        locks = RepositoryLocks()
        with pytest.raises(RuntimeError):
            with locks.hold("cb"):
                assert locks.is_locked("cb")
                raise RuntimeError("boom")
        assert not locks.is_locked("cb")


class TestSyncResult:
    def test_to_dict(self):
        result = SyncResult(outcome=SyncOutcome.PARTIAL, codebase_id="cb", files_failed=1, errors=["x"])

        data = result.to_dict()
        assert data["outcome"] == "partial"
        assert data["errors"] == ["x"]
        assert result.is_partial
        assert str(result).startswith("partial: 0 changes")
