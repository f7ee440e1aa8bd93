# codesync/chunking/plugins/window.py
"""
Fixed-size overlapping line windows.

Used for languages without a syntactic chunker and whenever parsing fails.
Windows overlap on purpose so context across a boundary is not lost.

Chunker ID format: "window:{window_lines}:{overlap}"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List

from codesync.chunking.base import ChunkKind, CodeChunk, build_chunk


@dataclass
class WindowChunker:
    """
    Example:
        >>> WindowChunker(window_lines=40, overlap=10).chunker_id
        'window:40:10'
    """

    plugin_name: str = field(default="window", repr=False)
    window_lines: int = 40
    overlap: int = 10

    def __post_init__(self) -> None:
        if self.window_lines < 1:
            raise ValueError(f"window_lines must be >= 1, got {self.window_lines}")
        if not 0 <= self.overlap < self.window_lines:
            raise ValueError(
                f"overlap must be in [0, window_lines), got {self.overlap} for {self.window_lines}"
            )

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:{self.window_lines}:{self.overlap}"

    def chunk(self, file_path: str, text: str, language: str = "text") -> List[CodeChunk]:
        if not text.strip():
            return []

        lines = text.split("\n")
        # A trailing newline does not start another line.
        while lines and not lines[-1].strip():
            lines.pop()

        label = PurePosixPath(file_path).name
        step = self.window_lines - self.overlap
        chunks: List[CodeChunk] = []
        start = 1

        while True:
            end = min(start + self.window_lines - 1, len(lines))
            chunks.append(
                build_chunk(file_path, lines, ChunkKind.WINDOW, f"{label}:{start}-{end}", start, end, language)
            )
            if end >= len(lines):
                break
            start += step

        return chunks


__all__ = ["WindowChunker"]
