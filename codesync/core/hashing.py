# codesync/core/hashing.py
"""
Content hashing for change detection and chunk identity.

- File identity is the SHA-256 of the raw bytes, prefixed "sha256:".
  Binary files hash like any other file; an empty file hashes to the
  digest of zero-length input.
- Chunk ids are the SHA-256 of (path, start line, end line, content hash),
  so identical content at the same location keeps the same id across runs.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Union

EMPTY_CONTENT_HASH = f"sha256:{hashlib.sha256(b'').hexdigest()}"


def compute_content_hash(path: Union[str, Path]) -> str:
    """
    Compute SHA-256 hash of a file's contents.

    Args:
        path: Path to the file to hash

    Returns:
        SHA-256 hash as hex string with "sha256:" prefix

    Raises:
        FileNotFoundError: If file doesn't exist
        IsADirectoryError: If path is a directory
    """
    p = Path(path)

    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if p.is_dir():
        raise IsADirectoryError(f"Path is a directory: {path}")

    hasher = hashlib.sha256()
    chunk_size = 65536

    with p.open("rb") as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)

    return f"sha256:{hasher.hexdigest()}"


def compute_bytes_hash(data: bytes) -> str:
    """SHA-256 of raw bytes with "sha256:" prefix."""
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def compute_text_hash(text: str) -> str:
    """SHA-256 of UTF-8 encoded text with "sha256:" prefix."""
    return compute_bytes_hash(text.encode("utf-8"))


def compute_chunk_id(
    file_path: str,
    start_line: int,
    end_line: int,
    content_hash: str,
) -> str:
    """
    Compute a deterministic chunk id.

    Args:
        file_path: Repository-relative path of the file
        start_line: First line of the chunk (1-based)
        end_line: Last line of the chunk (inclusive)
        content_hash: Hash of the chunk text

    Returns:
        SHA-256 hex digest (no prefix, used as vector id)
    """
    key = "|".join([
        file_path,
        str(start_line),
        str(end_line),
        content_hash,
    ])

    return hashlib.sha256(key.encode("utf-8")).hexdigest()


__all__ = [
    "EMPTY_CONTENT_HASH",
    "compute_bytes_hash",
    "compute_chunk_id",
    "compute_content_hash",
    "compute_text_hash",
]
