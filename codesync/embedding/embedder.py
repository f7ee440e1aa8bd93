# codesync/embedding/embedder.py
"""
Embedder - turns chunks into vectors of a fixed dimension.

Per batch:
1. Texts longer than max_chars are cut to their head (the result is flagged)
2. The provider is called; transient failures (rate limit, 5xx, network)
   are retried with exponential backoff up to max_attempts
3. Non-transient failures halve the batch until the offending chunk is
   isolated, so one bad input does not fail its neighbours
4. Every returned vector is checked against the index dimension; a mismatch
   raises DimensionMismatchError immediately, before anything is written

Failures that survive this are reported per chunk, never raised.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from codesync.chunking.base import CodeChunk
from codesync.config.schema import EmbeddingSettings
from codesync.core.exceptions import DimensionMismatchError, ProviderAuthError, TransientProviderError
from codesync.core.http import APIError, AuthenticationError
from codesync.embedding.base import EmbeddingProvider, EmbeddingReport, EmbeddingResult
from codesync.logging.logger import get_logger
from codesync.logging.tags import EMBEDDING

logger = get_logger(__name__)

BatchCallback = Callable[[int, int], None]
Sleep = Callable[[float], Awaitable[None]]


class _BatchFailed(Exception):
    def __init__(self, message: str, transient: bool):
        self.transient = transient
        super().__init__(message)


def truncate_text(text: str, max_chars: int) -> Tuple[str, bool]:
    """Keep the head of an oversized text. Deterministic for a given input."""
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars], True


class Embedder:
    """
    Batching, retrying wrapper around an EmbeddingProvider.

    Args:
        provider: Remote model
        dimension: Dimension the target index is configured with
        batch_size: Provider batch limit
        sleep: Injected for tests; defaults to asyncio.sleep
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        dimension: int,
        batch_size: int = 100,
        max_chars: int = 8000,
        max_attempts: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        batch_delay: float = 0.1,
        sleep: Optional[Sleep] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.provider = provider
        self.dimension = dimension
        self.batch_size = batch_size
        self.max_chars = max_chars
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.batch_delay = batch_delay
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(
        cls,
        provider: EmbeddingProvider,
        settings: EmbeddingSettings,
        sleep: Optional[Sleep] = None,
    ) -> "Embedder":
        return cls(
            provider=provider,
            dimension=settings.dimension,
            batch_size=settings.batch_size,
            max_chars=settings.max_chars,
            max_attempts=settings.max_attempts,
            backoff_base=settings.backoff_base,
            backoff_max=settings.backoff_max,
            batch_delay=settings.batch_delay,
            sleep=sleep,
        )

    def _backoff(self, attempt: int) -> float:
        return min(self.backoff_base * (2 ** attempt), self.backoff_max)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def embed(
        self,
        chunks: Sequence[CodeChunk],
        on_batch: Optional[BatchCallback] = None,
    ) -> EmbeddingReport:
        """
        Embed chunks in provider-sized batches.

        Args:
            chunks: Chunks to embed
            on_batch: Called with (batches_done, batches_total) after each batch

        Raises:
            DimensionMismatchError: A vector's length differs from `dimension`
            ProviderAuthError: The provider rejected the credentials
        """
        report = EmbeddingReport()
        if not chunks:
            return report

        total = (len(chunks) + self.batch_size - 1) // self.batch_size
        logger.info(
            f"{EMBEDDING} Embedding {len(chunks)} chunks in {total} batches "
            f"(size={self.batch_size}, model={self.provider.model})"
        )

        for batch_num, offset in enumerate(range(0, len(chunks), self.batch_size), start=1):
            if batch_num > 1 and self.batch_delay:
                await self._sleep(self.batch_delay)

            batch = list(chunks[offset : offset + self.batch_size])
            t0 = time.perf_counter()
            await self._embed_group(batch, report)
            report.batches += 1
            logger.debug(
                f"{EMBEDDING} Batch {batch_num}/{total}: {len(batch)} chunks in "
                f"{time.perf_counter() - t0:.2f}s"
            )
            if on_batch is not None:
                on_batch(batch_num, total)

        if report.failed:
            logger.warning(f"{EMBEDDING} {len(report.failed)} chunks failed to embed")
        return report

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _embed_group(self, batch: List[CodeChunk], report: EmbeddingReport) -> None:
        prepared = [truncate_text(c.content, self.max_chars) for c in batch]
        texts = [text for text, _ in prepared]

        try:
            vectors = await self._call_with_retry(texts)
        except _BatchFailed as e:
            if not e.transient and len(batch) > 1:
                mid = len(batch) // 2
                logger.debug(f"{EMBEDDING} Batch of {len(batch)} rejected, halving: {e}")
                await self._embed_group(batch[:mid], report)
                await self._embed_group(batch[mid:], report)
                return
            for chunk in batch:
                report.failed[chunk.id] = f"{chunk.file_path}:{chunk.start_line}: {e}"
            logger.warning(f"{EMBEDDING} {len(batch)} chunks failed: {e}")
            return

        for chunk, (_, was_truncated), vector in zip(batch, prepared, vectors):
            if len(vector) != self.dimension:
                raise DimensionMismatchError(
                    self.dimension, len(vector), context=f"model {self.provider.model}"
                )
            report.results.append(
                EmbeddingResult(
                    chunk_id=chunk.id,
                    vector=list(vector),
                    model=self.provider.model,
                    provider=self.provider.provider_name,
                    truncated=was_truncated,
                )
            )
            if was_truncated:
                report.truncated += 1

    async def _call_with_retry(self, texts: List[str]) -> List[List[float]]:
        last_error: Optional[Exception] = None

        for attempt in range(self.max_attempts):
            try:
                vectors = await self.provider.embed(texts)
            except AuthenticationError as e:
                raise ProviderAuthError(str(e)) from e
            except APIError as e:
                if not e.is_transient:
                    raise _BatchFailed(str(e), transient=False) from e
                last_error = e
            except TransientProviderError as e:
                last_error = e
            else:
                if len(vectors) != len(texts):
                    raise _BatchFailed(
                        f"provider returned {len(vectors)} vectors for {len(texts)} texts",
                        transient=False,
                    )
                return vectors

            if attempt + 1 < self.max_attempts:
                delay = self._backoff(attempt)
                logger.debug(
                    f"{EMBEDDING} Transient failure (attempt {attempt + 1}/{self.max_attempts}), "
                    f"retrying in {delay:.2f}s: {last_error}"
                )
                await self._sleep(delay)

        raise _BatchFailed(
            f"gave up after {self.max_attempts} attempts: {last_error}", transient=True
        )


__all__ = ["Embedder", "truncate_text"]
