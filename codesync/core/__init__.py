# codesync/core/__init__.py
"""Shared building blocks: hashing, HTTP clients, errors and paths."""

from codesync.core.exceptions import (
    CodesyncError,
    DimensionMismatchError,
    FatalConfigError,
    FilterValidationError,
    IndexNotReadyError,
    InvalidSignatureError,
    InvalidTransitionError,
    ProviderAuthError,
    RepositoryError,
    StateStoreError,
    SyncInProgressError,
    TransientProviderError,
    ValidationError,
)
from codesync.core.hashing import (
    EMPTY_CONTENT_HASH,
    compute_bytes_hash,
    compute_chunk_id,
    compute_content_hash,
    compute_text_hash,
)
from codesync.core.paths import CodesyncPaths

__all__ = [
    "CodesyncError",
    "CodesyncPaths",
    "DimensionMismatchError",
    "EMPTY_CONTENT_HASH",
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
    "compute_bytes_hash",
    "compute_chunk_id",
    "compute_content_hash",
    "compute_text_hash",
]
