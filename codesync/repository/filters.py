# codesync/repository/filters.py
"""Which repository files are worth indexing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List, Pattern, Sequence

EXCLUDED_PATTERNS: Sequence[str] = (
    r"(^|/)node_modules(/|$)",
    r"(^|/)\.git(/|$)",
    r"(^|/)\.DS_Store$",
    r"(^|/)\.env(\.|$)",
    r"\.log$",
    r"\.lock$",
    r"(^|/)package-lock\.json$",
    r"(^|/)dist/",
    r"(^|/)build/",
    r"(^|/)coverage/",
    r"(^|/)\.cache/",
    r"(^|/)__pycache__/",
    r"(^|/)\.venv/",
    r"\.pyc$",
    r"\.class$",
    r"\.jar$",
    r"\.war$",
    r"\.exe$",
    r"\.dll$",
    r"\.so$",
    r"\.zip$",
    r"\.tar\.gz$",
    r"\.rar$",
)

BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp",
    ".mp3", ".mp4", ".wav", ".avi", ".mov", ".wmv",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".tar", ".gz", ".rar", ".7z",
    ".exe", ".dll", ".so", ".dylib",
    ".ttf", ".otf", ".woff", ".woff2",
    ".bin", ".dat", ".db", ".sqlite",
})

EXCLUDED_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", "coverage", ".cache", "__pycache__", ".venv",
})


@dataclass
class FileFilter:
    """
    Path and size rules applied to every listed file.

    Example:
        >>> f = FileFilter()
        >>> f.accepts("src/app.ts", 120), f.accepts("node_modules/x/index.js", 10)
        (True, False)
    """

    max_file_bytes: int = 1024 * 1024
    extra_patterns: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._patterns: List[Pattern[str]] = [
            re.compile(p) for p in list(EXCLUDED_PATTERNS) + list(self.extra_patterns)
        ]

    def is_excluded(self, path: str) -> bool:
        return any(p.search(path) for p in self._patterns)

    @staticmethod
    def is_binary(path: str) -> bool:
        return PurePosixPath(path).suffix.lower() in BINARY_EXTENSIONS

    def accepts(self, path: str, size: int = 0) -> bool:
        return not (self.is_excluded(path) or self.is_binary(path) or size > self.max_file_bytes)


__all__ = ["BINARY_EXTENSIONS", "EXCLUDED_DIRS", "EXCLUDED_PATTERNS", "FileFilter"]
