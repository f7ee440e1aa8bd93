# codesync/chunking/plugins/braces.py
"""
Shared scanner for brace-delimited languages.

Declarations are recognized by line-anchored regexes at brace depth 0. A
declaration whose header opens a brace ends on the line that closes it; one
that does not ends at its terminating semicolon, or at the end of its line
when the next line does not continue the expression.
String literals and comments are blanked before braces are counted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple

from codesync.chunking.base import ChunkingError, ChunkKind

_STRINGS = re.compile(r""""(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`""")
_LINE_COMMENT = re.compile(r"//.*$")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)

_CONTINUES_AFTER = ("=", "(", ",", "=>", "+", "&&", "||", "[")
_CONTINUES_BEFORE = ("{", ".", "?", "+", "&&", "||", "|", "extends", "implements")


@dataclass(frozen=True)
class DeclarationRule:
    kind: ChunkKind
    pattern: Pattern[str]


@dataclass(frozen=True)
class Span:
    kind: ChunkKind
    name: str
    start_line: int
    end_line: int


def strip_noise(text: str) -> List[str]:
    """Return lines with comments and string literals blanked, line count preserved."""

    def blank(match: "re.Match[str]") -> str:
        return re.sub(r"[^\n]", " ", match.group(0))

    cleaned = _BLOCK_COMMENT.sub(blank, text)
    cleaned = _STRINGS.sub(blank, cleaned)
    return [_LINE_COMMENT.sub("", line) for line in cleaned.split("\n")]


def _match(rules: Sequence[DeclarationRule], line: str) -> Optional[Tuple[ChunkKind, str]]:
    for rule in rules:
        m = rule.pattern.match(line)
        if m:
            name = next((g for g in reversed(m.groups()) if g), rule.kind.value)
            return rule.kind, name
    return None


def find_statement_end(clean: Sequence[str], start: int) -> int:
    """
    Index of the last line of the statement beginning at `start`.

    Raises:
        ChunkingError: When a brace opened by the statement never closes
    """
    depth = 0
    seen_brace = False
    for j in range(start, len(clean)):
        for ch in clean[j]:
            if ch == "{":
                depth += 1
                seen_brace = True
            elif ch == "}":
                depth -= 1
                if depth < 0:
                    raise ChunkingError(f"Unbalanced closing brace at line {j + 1}")
            elif ch == ";" and depth == 0:
                return j

        if depth > 0:
            continue
        if seen_brace:
            return j

        nxt = clean[j + 1].lstrip() if j + 1 < len(clean) else ""
        if nxt and (clean[j].rstrip().endswith(_CONTINUES_AFTER) or nxt.startswith(_CONTINUES_BEFORE)):
            continue
        return j

    raise ChunkingError(f"Statement starting at line {start + 1} never closes")


def scan_declarations(
    text: str,
    rules: Sequence[DeclarationRule],
    import_pattern: Pattern[str],
) -> List[Span]:
    """
    Find top-level declarations as non-overlapping spans.

    Consecutive import statements are grouped into one IMPORT span.

    Raises:
        ChunkingError: When braces do not balance
    """
    raw_lines = text.split("\n")
    clean = strip_noise(text)
    spans: List[Span] = []
    depth = 0
    i = 0

    while i < len(clean):
        if depth == 0 and clean[i].strip():
            if import_pattern.match(raw_lines[i]):
                start = i
                end = find_statement_end(clean, i)
                while end + 1 < len(clean) and import_pattern.match(raw_lines[end + 1]):
                    end = find_statement_end(clean, end + 1)
                spans.append(Span(ChunkKind.IMPORT, "imports", start + 1, end + 1))
                i = end + 1
                continue

            matched = _match(rules, raw_lines[i])
            if matched is not None:
                kind, name = matched
                end = find_statement_end(clean, i)
                spans.append(Span(kind, name, i + 1, end + 1))
                i = end + 1
                continue

        depth += clean[i].count("{") - clean[i].count("}")
        if depth < 0:
            raise ChunkingError(f"Unbalanced closing brace at line {i + 1}")
        i += 1

    if depth != 0:
        raise ChunkingError("Unbalanced braces at end of file")
    return spans


__all__ = ["DeclarationRule", "Span", "find_statement_end", "scan_declarations", "strip_noise"]
