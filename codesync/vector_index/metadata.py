# codesync/vector_index/metadata.py
"""Chunk + embedding -> VectorRecord with searchable metadata."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional

from codesync.chunking.base import CodeChunk
from codesync.embedding.base import EmbeddingResult
from codesync.vector_index.types import VectorRecord

PREVIEW_CHARS = 200
FULL_TEXT_LIMIT = 2000


def obfuscate_file_path(file_path: str) -> str:
    """
    Replace directory names with placeholders, keep the file name.

    The first directory becomes "project", deeper ones "dir1", "dir2", ...
    The original path is stored next to it, so this is cosmetic only.

    Examples:
        >>> obfuscate_file_path("src/lib/util.ts")
        'project/dir1/util.ts'
        >>> obfuscate_file_path("README.md")
        'README.md'
    """
    parts = PurePosixPath(file_path).parts
    if len(parts) <= 1:
        return file_path
    dirs = ["project" if i == 0 else f"dir{i}" for i in range(len(parts) - 1)]
    return "/".join(dirs + [parts[-1]])


def build_record(
    chunk: CodeChunk,
    embedding: EmbeddingResult,
    codebase_id: str,
    indexed_at: Optional[str] = None,
) -> VectorRecord:
    """
    Raises:
        ValueError: If the embedding belongs to a different chunk
    """
    if embedding.chunk_id != chunk.id:
        raise ValueError(f"Embedding for {embedding.chunk_id} paired with chunk {chunk.id}")

    meta = chunk.metadata
    metadata = {
        "codebase_id": codebase_id,
        "file_path": obfuscate_file_path(chunk.file_path),
        "original_file_path": chunk.file_path,
        "file_name": PurePosixPath(chunk.file_path).name,
        "language": meta.language,
        "kind": chunk.kind.value,
        "name": chunk.name,
        "start_line": chunk.start_line,
        "end_line": chunk.end_line,
        "complexity": meta.complexity,
        "keywords": meta.keywords[:20],
        "imports": meta.imports[:10],
        "exports": meta.exports[:10],
        "dependencies": meta.dependencies[:10],
        "content_hash": chunk.content_hash,
        "embedding_model": embedding.tag,
        "truncated": embedding.truncated,
        "indexed_at": indexed_at or datetime.now(timezone.utc).isoformat(),
        "content_preview": chunk.content[:PREVIEW_CHARS],
    }
    if chunk.parent_id:
        metadata["parent_id"] = chunk.parent_id
    if len(chunk.content) <= FULL_TEXT_LIMIT:
        metadata["text"] = chunk.content

    return VectorRecord(id=chunk.id, values=list(embedding.vector), metadata=metadata)


__all__ = ["build_record", "obfuscate_file_path"]
