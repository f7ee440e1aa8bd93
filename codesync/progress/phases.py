# codesync/progress/phases.py
"""Sync phases and the transitions allowed between them."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet

from codesync.core.exceptions import InvalidTransitionError


class SyncPhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DIFFING = "diffing"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    UPSERTING = "upserting"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES: FrozenSet[SyncPhase] = frozenset({SyncPhase.COMPLETE, SyncPhase.ERROR})

# DIFFING -> COMPLETE is the no-changes exit.
TRANSITIONS: Dict[SyncPhase, FrozenSet[SyncPhase]] = {
    SyncPhase.IDLE: frozenset({SyncPhase.FETCHING, SyncPhase.ERROR}),
    SyncPhase.FETCHING: frozenset({SyncPhase.DIFFING, SyncPhase.ERROR}),
    SyncPhase.DIFFING: frozenset({SyncPhase.CHUNKING, SyncPhase.COMPLETE, SyncPhase.ERROR}),
    SyncPhase.CHUNKING: frozenset({SyncPhase.EMBEDDING, SyncPhase.ERROR}),
    SyncPhase.EMBEDDING: frozenset({SyncPhase.UPSERTING, SyncPhase.ERROR}),
    SyncPhase.UPSERTING: frozenset({SyncPhase.COMPLETE, SyncPhase.ERROR}),
    SyncPhase.COMPLETE: frozenset(),
    SyncPhase.ERROR: frozenset(),
}

# Progress bounds (percent) for each phase.
PHASE_PROGRESS: Dict[SyncPhase, tuple] = {
    SyncPhase.IDLE: (0, 0),
    SyncPhase.FETCHING: (5, 5),
    SyncPhase.DIFFING: (15, 15),
    SyncPhase.CHUNKING: (20, 35),
    SyncPhase.EMBEDDING: (35, 70),
    SyncPhase.UPSERTING: (70, 95),
    SyncPhase.COMPLETE: (100, 100),
}


def can_transition(current: SyncPhase, target: SyncPhase) -> bool:
    return current == target or target in TRANSITIONS[current]


def check_transition(current: SyncPhase, target: SyncPhase) -> None:
    """
    Staying in the same phase is allowed (per-batch updates).

    Raises:
        InvalidTransitionError: target is not reachable from current
    """
    if current.is_terminal and current != target:
        raise InvalidTransitionError(f"Job already finished in phase '{current.value}'")
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Cannot move from '{current.value}' to '{target.value}'")


def phase_progress(phase: SyncPhase, done: int = 0, total: int = 0) -> int:
    """Percent for `done` of `total` units inside `phase`."""
    low, high = PHASE_PROGRESS.get(phase, (0, 0))
    if total <= 0:
        return low
    fraction = min(max(done / total, 0.0), 1.0)
    return int(low + (high - low) * fraction)


__all__ = [
    "PHASE_PROGRESS",
    "SyncPhase",
    "TERMINAL_PHASES",
    "TRANSITIONS",
    "can_transition",
    "check_transition",
    "phase_progress",
]
