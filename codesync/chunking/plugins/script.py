# codesync/chunking/plugins/script.py
"""
JavaScript / TypeScript chunker.

Recognizes top-level functions, classes, interfaces, type aliases, enums
and variable declarations (arrow functions included), optionally exported.

Chunker ID format: "script:v1"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

from codesync.chunking.base import ChunkKind, CodeChunk, build_chunk
from codesync.chunking.plugins.braces import DeclarationRule, scan_declarations

_EXPORT = r"(?:export\s+)?(?:default\s+)?(?:declare\s+)?"

SCRIPT_RULES = (
    DeclarationRule(
        ChunkKind.FUNCTION,
        re.compile(rf"^{_EXPORT}(?:async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)?"),
    ),
    DeclarationRule(
        ChunkKind.CLASS,
        re.compile(rf"^{_EXPORT}(?:abstract\s+)?class\s+([A-Za-z_$][\w$]*)?"),
    ),
    DeclarationRule(ChunkKind.INTERFACE, re.compile(rf"^{_EXPORT}interface\s+([A-Za-z_$][\w$]*)")),
    DeclarationRule(ChunkKind.TYPE, re.compile(rf"^{_EXPORT}type\s+([A-Za-z_$][\w$]*)\s*(?:<[^=]*>)?\s*=")),
    DeclarationRule(ChunkKind.TYPE, re.compile(rf"^{_EXPORT}(?:const\s+)?enum\s+([A-Za-z_$][\w$]*)")),
    DeclarationRule(
        ChunkKind.FUNCTION,
        re.compile(
            rf"^{_EXPORT}(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*(?::[^=]+)?=\s*(?:async\s+)?"
            r"(?:function\b|\([^)]*\)\s*(?::[^=]+)?=>|[A-Za-z_$][\w$]*\s*=>)"
        ),
    ),
    DeclarationRule(ChunkKind.VARIABLE, re.compile(rf"^{_EXPORT}(?:const|let|var)\s+([A-Za-z_$][\w$]*)")),
    DeclarationRule(ChunkKind.BLOCK, re.compile(r"^export\s+(?:default\s+)?(?:\{|\*)")),
)

SCRIPT_IMPORT = re.compile(r"^\s*import[\s{*'\"]|^\s*(?:const|let|var)\s+[\w{}\s,]+=\s*require\(")


@dataclass
class ScriptChunker:
    plugin_name: str = field(default="script", repr=False)

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:v1"

    def chunk(self, file_path: str, text: str, language: str = "javascript") -> List[CodeChunk]:
        lines = text.split("\n")
        return [
            build_chunk(file_path, lines, span.kind, span.name, span.start_line, span.end_line, language)
            for span in scan_declarations(text, SCRIPT_RULES, SCRIPT_IMPORT)
        ]


__all__ = ["ScriptChunker"]
