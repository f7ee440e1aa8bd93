# codesync/chunking/router.py
"""
ChunkingRouter - picks a chunker by language and post-processes chunks.

    (file_path, text)
          │
          ▼
    detect_language ──► python      → PythonCodeChunker
                        js / ts     → ScriptChunker
                        java        → JavaChunker
                        anything    → WindowChunker
          │
          ▼  ChunkingError or no syntactic units → WindowChunker
          ▼
    drop trivial import/block chunks, split oversized chunks

Usage:
    router = ChunkingRouter.from_settings(config.chunking)
    chunks = router.chunk_file("src/app.ts", text)
"""

from __future__ import annotations

from typing import Dict, List, Optional

from codesync.chunking.base import Chunker, ChunkingError, ChunkKind, CodeChunk, build_chunk, split_source_lines
from codesync.chunking.language import detect_language
from codesync.chunking.plugins import JavaChunker, PythonCodeChunker, ScriptChunker, WindowChunker
from codesync.config.schema import ChunkingSettings
from codesync.logging.logger import get_logger
from codesync.logging.tags import CHUNKING

logger = get_logger(__name__)

_TRIVIAL_KINDS = (ChunkKind.IMPORT, ChunkKind.BLOCK)


class ChunkingRouter:
    """
    Routes files to language-specific chunkers with a windowed fallback.

    Syntactic chunks from one file never overlap; only the fallback windows do.
    """

    def __init__(
        self,
        chunkers: Dict[str, Chunker],
        fallback: WindowChunker,
        min_chunk_chars: int = 50,
        max_chunk_chars: int = 1000,
        split_factor: float = 1.5,
    ) -> None:
        self._chunkers = chunkers
        self._fallback = fallback
        self.min_chunk_chars = min_chunk_chars
        self.max_chunk_chars = max_chunk_chars
        self.split_factor = split_factor

    @classmethod
    def from_settings(cls, settings: Optional[ChunkingSettings] = None) -> "ChunkingRouter":
        settings = settings or ChunkingSettings()
        script = ScriptChunker()
        return cls(
            chunkers={
                "python": PythonCodeChunker(max_chunk_lines=settings.max_chunk_lines),
                "javascript": script,
                "typescript": script,
                "java": JavaChunker(),
            },
            fallback=WindowChunker(window_lines=settings.window_lines, overlap=settings.window_overlap),
            min_chunk_chars=settings.min_chunk_chars,
            max_chunk_chars=settings.max_chunk_chars,
            split_factor=settings.split_factor,
        )

    @property
    def chunker_id(self) -> str:
        """Identifier covering every chunker and post-processing parameter."""
        parts = sorted({c.chunker_id for c in self._chunkers.values()})
        parts.append(self._fallback.chunker_id)
        parts.append(f"split:{self.max_chunk_chars}:{self.split_factor}:{self.min_chunk_chars}")
        return "|".join(parts)

    def chunk_file(self, file_path: str, text: str) -> List[CodeChunk]:
        """Chunk one file. Identical input always yields identical chunk ids."""
        if not text.strip():
            return []

        language = detect_language(file_path)
        chunker = self._chunkers.get(language)
        chunks: List[CodeChunk] = []

        if chunker is not None:
            try:
                chunks = chunker.chunk(file_path, text, language)
            except ChunkingError as e:
                logger.warning(f"{CHUNKING} {e}; falling back to line windows for {file_path}")
                chunks = []

        if not chunks:
            return self._fallback.chunk(file_path, text, language)

        chunks = self._drop_trivial(chunks)
        return self._split_oversized(chunks, text, language)

    # -------------------------------------------------------------------------
    # Post-processing
    # -------------------------------------------------------------------------

    def _drop_trivial(self, chunks: List[CodeChunk]) -> List[CodeChunk]:
        """Drop tiny import/block chunks unless that would leave nothing."""
        kept = [
            c
            for c in chunks
            if c.kind not in _TRIVIAL_KINDS or len(c.content.strip()) >= self.min_chunk_chars
        ]
        return kept or chunks

    def _split_oversized(self, chunks: List[CodeChunk], text: str, language: str) -> List[CodeChunk]:
        """
        Replace chunks longer than split_factor * max_chunk_chars with
        line-bounded parts that point back at the original id.
        """
        limit = self.max_chunk_chars * self.split_factor
        lines = split_source_lines(text) if language == "python" else text.split("\n")
        result: List[CodeChunk] = []

        for chunk in chunks:
            if len(chunk.content) <= limit or chunk.start_line == chunk.end_line:
                result.append(chunk)
                continue

            part_start = chunk.start_line
            size = 0
            part = 1
            for line_no in range(chunk.start_line, chunk.end_line + 1):
                line_len = len(lines[line_no - 1]) + 1
                if size and size + line_len > self.max_chunk_chars:
                    result.append(self._part(chunk, lines, part_start, line_no - 1, part, language))
                    part += 1
                    part_start = line_no
                    size = 0
                size += line_len
            result.append(self._part(chunk, lines, part_start, chunk.end_line, part, language))

            logger.debug(f"{CHUNKING} Split {chunk.file_path}:{chunk.name} into {part} parts")

        return result

    @staticmethod
    def _part(
        parent: CodeChunk,
        lines: List[str],
        start: int,
        end: int,
        index: int,
        language: str,
    ) -> CodeChunk:
        return build_chunk(
            parent.file_path,
            lines,
            parent.kind,
            f"{parent.name} (part {index})",
            start,
            end,
            language,
            parent_id=parent.id,
        )


__all__ = ["ChunkingRouter"]
