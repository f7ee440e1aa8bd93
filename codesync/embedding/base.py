# codesync/embedding/base.py
"""Embedding provider protocol and result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Remote embedding model.

    embed() returns one vector per input text, in input order. Failures are
    raised as codesync.core.http.APIError (or a subclass).
    """

    provider_name: str
    model: str

    async def embed(self, texts: List[str]) -> List[List[float]]: ...


@dataclass(frozen=True)
class EmbeddingResult:
    """Vector for one chunk."""

    chunk_id: str
    vector: List[float]
    model: str
    provider: str
    truncated: bool = False

    @property
    def tag(self) -> str:
        return f"{self.provider}:{self.model}"


@dataclass
class EmbeddingReport:
    """Outcome of embedding a list of chunks."""

    results: List[EmbeddingResult] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    batches: int = 0
    truncated: int = 0

    @property
    def succeeded(self) -> int:
        return len(self.results)


__all__ = ["EmbeddingProvider", "EmbeddingReport", "EmbeddingResult"]
