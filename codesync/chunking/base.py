# codesync/chunking/base.py
"""
Chunk model and chunker protocol.

A CodeChunk is the unit that gets embedded and stored as one vector. Its id
is a hash of (file path, start line, end line, content hash), so unchanged
content at the same location keeps its id across runs and can be reused
instead of re-embedded.

Flow: (file_path, text) -> Chunker.chunk() -> List[CodeChunk]
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from codesync.core.hashing import compute_chunk_id, compute_text_hash

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class ChunkKind(str, Enum):
    """What a chunk's boundaries follow."""

    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    VARIABLE = "variable"
    IMPORT = "import"
    BLOCK = "block"
    WINDOW = "window"


class ChunkingError(Exception):
    """A chunker could not parse the file; callers fall back to windows."""

    pass


class ChunkMetadata(BaseModel):
    """Derived facts about a chunk's text."""

    model_config = ConfigDict(extra="forbid")

    language: str = Field(..., description="Detected language")
    complexity: int = Field(default=1, ge=1, le=10, description="Rough control-flow complexity")
    keywords: List[str] = Field(default_factory=list)
    imports: List[str] = Field(default_factory=list, description="Imported module specifiers")
    exports: List[str] = Field(default_factory=list, description="Publicly exported names")
    dependencies: List[str] = Field(default_factory=list, description="External packages")


class CodeChunk(BaseModel):
    """A semantically bounded slice of one file."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Deterministic chunk id")
    file_path: str = Field(..., description="Repository-relative file path")
    kind: ChunkKind
    name: str = Field(..., description="Function/class name or a range label")
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)
    content: str
    content_hash: str
    metadata: ChunkMetadata
    parent_id: Optional[str] = Field(default=None, description="Chunk this one was split from")
    truncated: bool = Field(default=False, description="Content was cut before embedding")

    @model_validator(mode="after")
    def _range_ordered(self) -> "CodeChunk":
        if self.start_line > self.end_line:
            raise ValueError(f"start_line {self.start_line} > end_line {self.end_line}")
        return self

    def overlaps(self, other: "CodeChunk") -> bool:
        return self.start_line <= other.end_line and other.start_line <= self.end_line


def build_chunk(
    file_path: str,
    lines: Sequence[str],
    kind: ChunkKind,
    name: str,
    start_line: int,
    end_line: int,
    language: str,
    parent_id: Optional[str] = None,
) -> CodeChunk:
    """
    Build a chunk for lines[start_line - 1:end_line] with id and metadata.

    Line numbers are 1-based and inclusive.
    """
    from codesync.chunking.metadata import extract_metadata

    content = "\n".join(lines[start_line - 1 : end_line])
    content_hash = compute_text_hash(content)
    return CodeChunk(
        id=compute_chunk_id(file_path, start_line, end_line, content_hash),
        file_path=file_path,
        kind=kind,
        name=name,
        start_line=start_line,
        end_line=end_line,
        content=content,
        content_hash=content_hash,
        metadata=extract_metadata(content, language),
        parent_id=parent_id,
    )


def split_source_lines(text: str) -> List[str]:
    """Split on LF, CRLF and CR only: the line breaks ast counts."""
    return _LINE_BREAK.split(text)


@runtime_checkable
class Chunker(Protocol):
    """
    Protocol for chunking plugins.

    Contract:
    - plugin_name: plugin identifier, e.g. "python", "window"
    - chunker_id: "{plugin_name}:{param1}:..." for every param that changes output
    - chunk: raises ChunkingError when the text cannot be parsed
    """

    plugin_name: str

    @property
    def chunker_id(self) -> str: ...

    def chunk(self, file_path: str, text: str, language: str) -> List[CodeChunk]: ...


__all__ = [
    "ChunkKind",
    "ChunkMetadata",
    "Chunker",
    "ChunkingError",
    "CodeChunk",
    "build_chunk",
    "split_source_lines",
]
