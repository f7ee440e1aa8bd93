# codesync/chunking/language.py
"""File extension -> language mapping."""

from __future__ import annotations

from pathlib import PurePosixPath

LANGUAGE_MAP: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".pyi": "python",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".rb": "ruby",
    ".php": "php",
    ".md": "markdown",
    ".mdx": "markdown",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "css",
    ".sh": "shell",
    ".bash": "shell",
    ".sql": "sql",
}

FILENAME_MAP: dict[str, str] = {
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
}


def detect_language(file_path: str) -> str:
    """Language name for a path; "text" when unknown."""
    p = PurePosixPath(file_path)
    if p.name in FILENAME_MAP:
        return FILENAME_MAP[p.name]
    return LANGUAGE_MAP.get(p.suffix.lower(), "text")


__all__ = ["FILENAME_MAP", "LANGUAGE_MAP", "detect_language"]
