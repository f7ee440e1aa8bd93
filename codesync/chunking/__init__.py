# codesync/chunking/__init__.py
"""Split files into semantically bounded chunks with stable ids."""

from codesync.chunking.base import (
    ChunkKind,
    ChunkMetadata,
    Chunker,
    ChunkingError,
    CodeChunk,
    build_chunk,
    split_source_lines,
)
from codesync.chunking.language import detect_language
from codesync.chunking.router import ChunkingRouter

__all__ = [
    "ChunkKind",
    "ChunkMetadata",
    "Chunker",
    "ChunkingError",
    "ChunkingRouter",
    "CodeChunk",
    "build_chunk",
    "detect_language",
    "split_source_lines",
]
