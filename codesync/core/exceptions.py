# codesync/core/exceptions.py
"""
Exception hierarchy for codesync.

CodesyncError
├── ValidationError            rejected immediately, no side effects
│   ├── FilterValidationError
│   └── InvalidSignatureError
├── TransientProviderError     retried with backoff, then a per-item warning
├── FatalConfigError           aborts the sync before further writes
│   ├── DimensionMismatchError
│   ├── IndexNotReadyError
│   └── ProviderAuthError
├── SyncInProgressError
├── RepositoryError
├── StateStoreError
└── InvalidTransitionError

A partially failed sync is not an exception: it completes with a
non-empty error list (see codesync.sync.orchestrator.SyncOutcome).
"""

from __future__ import annotations


class CodesyncError(Exception):
    """Base class for all codesync errors."""

    pass


class ValidationError(CodesyncError):
    """Bad input: signature, missing parameters, malformed payload."""

    pass


class FilterValidationError(ValidationError):
    """A vector filter expression references an unknown field or bad value."""

    pass


class InvalidSignatureError(ValidationError):
    """Webhook signature missing, malformed or not matching the shared secret."""

    pass


class TransientProviderError(CodesyncError):
    """Network failure, rate limit or server error from an external provider."""

    pass


class FatalConfigError(CodesyncError):
    """Configuration problem that makes any further write unsafe."""

    pass


class DimensionMismatchError(FatalConfigError):
    """Embedding dimension differs from the index dimension."""

    def __init__(self, expected: int, actual: int, context: str = ""):
        self.expected = expected
        self.actual = actual
        suffix = f" ({context})" if context else ""
        super().__init__(
            f"Embedding dimension mismatch: index expects {expected}, got {actual}{suffix}"
        )


class IndexNotReadyError(FatalConfigError):
    """The vector index did not become ready within the polling budget."""

    pass


class ProviderAuthError(FatalConfigError):
    """Credentials were rejected by an external provider."""

    pass


class SyncInProgressError(CodesyncError):
    """A sync for this repository is already running."""

    def __init__(self, codebase_id: str):
        self.codebase_id = codebase_id
        super().__init__(f"Sync already in progress for '{codebase_id}'")


class RepositoryError(CodesyncError):
    """The repository collaborator failed to list or fetch content."""

    pass


class StateStoreError(CodesyncError):
    """Reading or writing a sync record failed."""

    pass


class InvalidTransitionError(CodesyncError):
    """A sync job was moved to a phase its current phase cannot reach."""

    pass


__all__ = [
    "CodesyncError",
    "DimensionMismatchError",
    "FatalConfigError",
    "FilterValidationError",
    "IndexNotReadyError",
    "InvalidSignatureError",
    "InvalidTransitionError",
    "ProviderAuthError",
    "RepositoryError",
    "StateStoreError",
    "SyncInProgressError",
    "TransientProviderError",
    "ValidationError",
]
