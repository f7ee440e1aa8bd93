# codesync/vector_index/__init__.py
"""Vector index lifecycle, batched writes and closed filter expressions."""

from codesync.vector_index.base import VectorStore
from codesync.vector_index.client import VectorIndexClient
from codesync.vector_index.metadata import build_record, obfuscate_file_path
from codesync.vector_index.types import (
    Eq,
    Filter,
    In,
    IndexDescription,
    QueryMatch,
    UpsertResult,
    VectorRecord,
    codebase_filter,
)

__all__ = [
    "Eq",
    "Filter",
    "In",
    "IndexDescription",
    "QueryMatch",
    "UpsertResult",
    "VectorIndexClient",
    "VectorRecord",
    "VectorStore",
    "build_record",
    "codebase_filter",
    "obfuscate_file_path",
]
