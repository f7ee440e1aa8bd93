# codesync/chunking/plugins/java.py
"""
Java chunker: top-level types by brace counting.

Annotations directly above a type are kept with it.

Chunker ID format: "java:v1"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

from codesync.chunking.base import ChunkKind, CodeChunk, build_chunk
from codesync.chunking.plugins.braces import DeclarationRule, scan_declarations

_MODIFIERS = r"(?:(?:public|protected|private|abstract|final|static|sealed|non-sealed|strictfp)\s+)*"

JAVA_RULES = (
    DeclarationRule(ChunkKind.CLASS, re.compile(rf"^\s*{_MODIFIERS}(?:class|record)\s+(\w+)")),
    DeclarationRule(ChunkKind.INTERFACE, re.compile(rf"^\s*{_MODIFIERS}@?interface\s+(\w+)")),
    DeclarationRule(ChunkKind.TYPE, re.compile(rf"^\s*{_MODIFIERS}enum\s+(\w+)")),
)

JAVA_IMPORT = re.compile(r"^\s*(?:import|package)\s+[\w.]")
_ANNOTATION = re.compile(r"^\s*@\w+")


@dataclass
class JavaChunker:
    plugin_name: str = field(default="java", repr=False)

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:v1"

    def chunk(self, file_path: str, text: str, language: str = "java") -> List[CodeChunk]:
        lines = text.split("\n")
        chunks: List[CodeChunk] = []
        previous_end = 0

        for span in scan_declarations(text, JAVA_RULES, JAVA_IMPORT):
            start = span.start_line
            while start - 1 > previous_end and _ANNOTATION.match(lines[start - 2]):
                start -= 1
            chunks.append(build_chunk(file_path, lines, span.kind, span.name, start, span.end_line, language))
            previous_end = span.end_line

        return chunks


__all__ = ["JavaChunker"]
