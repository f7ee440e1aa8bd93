# codesync/chunking/plugins/python_code.py
"""
Python chunker using the ast module.

Top-level functions and classes each become one chunk, starting at their
first decorator. Runs of other top-level statements (imports, constants,
module code) are grouped into block chunks. Top-level nodes never share
lines, so chunks never overlap.

Chunker ID format: "python:{max_chunk_lines}"
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from codesync.chunking.base import ChunkingError, ChunkKind, CodeChunk, build_chunk, split_source_lines


@dataclass
class PythonCodeChunker:
    """
    Example:
        >>> PythonCodeChunker().chunker_id
        'python:60'
    """

    plugin_name: str = field(default="python", repr=False)
    max_chunk_lines: int = 60

    def __post_init__(self) -> None:
        if self.max_chunk_lines < 1:
            raise ValueError(f"max_chunk_lines must be >= 1, got {self.max_chunk_lines}")

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:{self.max_chunk_lines}"

    @staticmethod
    def _span(node: ast.stmt) -> Tuple[int, int]:
        start = node.lineno
        decorators = getattr(node, "decorator_list", None)
        if decorators:
            start = min(start, min(d.lineno for d in decorators))
        end = node.end_lineno or node.lineno
        return start, end

    def chunk(self, file_path: str, text: str, language: str = "python") -> List[CodeChunk]:
        try:
            module = ast.parse(text)
        except (SyntaxError, ValueError) as e:
            raise ChunkingError(f"Cannot parse {file_path}: {e}") from e

        lines = split_source_lines(text)
        chunks: List[CodeChunk] = []
        block: Optional[Tuple[int, int]] = None

        def flush_block() -> None:
            nonlocal block
            if block is not None:
                start, end = block
                chunks.append(
                    build_chunk(
                        file_path, lines, ChunkKind.BLOCK, f"module:{start}-{end}", start, end, language
                    )
                )
                block = None

        for node in module.body:
            start, end = self._span(node)
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                flush_block()
                chunks.append(
                    build_chunk(file_path, lines, ChunkKind.FUNCTION, node.name, start, end, language)
                )
            elif isinstance(node, ast.ClassDef):
                flush_block()
                chunks.append(
                    build_chunk(file_path, lines, ChunkKind.CLASS, node.name, start, end, language)
                )
            elif block is None:
                block = (start, end)
            elif end - block[0] + 1 > self.max_chunk_lines:
                flush_block()
                block = (start, end)
            else:
                block = (block[0], end)

        flush_block()
        return chunks


__all__ = ["PythonCodeChunker"]
