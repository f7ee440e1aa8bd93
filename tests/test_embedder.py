# tests/test_embedder.py
"""
Tests for the Embedder and the OpenAI-compatible provider.

Key tests:
- test_batches_and_callback: Provider-sized batches, one callback each
- test_transient_errors_retried: Backoff then success
- test_bad_input_isolated: A rejected chunk fails alone, its batch neighbours succeed
- test_dimension_mismatch_raises: Wrong vector length aborts immediately
"""

from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from codesync.chunking.base import ChunkKind, build_chunk
from codesync.core.exceptions import DimensionMismatchError, ProviderAuthError
from codesync.core.http import APIError, AuthenticationError, RateLimitError
from codesync.embedding.embedder import Embedder, truncate_text
from codesync.embedding.openai import OpenAIEmbeddingProvider
from tests.conftest import DIMENSION, MockEmbeddingProvider, no_sleep

pytestmark = pytest.mark.tier2


def make_chunks(count: int, prefix: str = "chunk"):
    lines = [f"{prefix} number {i} with some content" for i in range(count)]
    return [
        build_chunk("src/data.txt", lines, ChunkKind.WINDOW, f"w{i}", i + 1, i + 1, "text")
        for i in range(count)
    ]


class ScriptedProvider:
    """Raises the queued errors in order, then embeds normally."""

    provider_name = "scripted"
    model = "scripted-1"

    def __init__(self, errors: List[Exception], dimension: int = DIMENSION):
        self.errors = list(errors)
        self.dimension = dimension
        self.calls = 0

    async def embed(self, texts):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return [[0.5] * self.dimension for _ in texts]


class TestTruncate:
    def test_short_text_untouched(self):
        assert truncate_text("abc", 10) == ("abc", False)

    def test_keeps_head(self):
        assert truncate_text("abcdefghij", 4) == ("abcd", True)


class TestEmbedder:
    """Tests for batching, retries and validation."""

    def test_batches_and_callback(self):
        provider = MockEmbeddingProvider()
        embedder = Embedder(provider, DIMENSION, batch_size=10, batch_delay=0, sleep=no_sleep)
        chunks = make_chunks(25)
        progress = []

        report = asyncio.run(embedder.embed(chunks, on_batch=lambda done, total: progress.append((done, total))))

        assert [len(batch) for batch in provider.calls] == [10, 10, 5]
        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert report.batches == 3
        assert report.succeeded == 25
        assert [r.chunk_id for r in report.results] == [c.id for c in chunks]
        assert all(len(r.vector) == DIMENSION for r in report.results)
        assert report.results[0].tag == "mock:mock-embed"

    def test_empty_input_makes_no_calls(self):
        provider = MockEmbeddingProvider()
        report = asyncio.run(Embedder(provider, DIMENSION).embed([]))

        assert provider.calls == []
        assert report.succeeded == 0

    def test_pause_between_batches(self):
        delays = []

        async def sleep(d):
            delays.append(d)

        embedder = Embedder(MockEmbeddingProvider(), DIMENSION, batch_size=2, batch_delay=0.25, sleep=sleep)
        asyncio.run(embedder.embed(make_chunks(5)))

        assert delays == [0.25, 0.25]

    def test_truncation_flagged(self):
        provider = MockEmbeddingProvider()
        embedder = Embedder(provider, DIMENSION, max_chars=10, batch_delay=0, sleep=no_sleep)

        report = asyncio.run(embedder.embed(make_chunks(1)))

        assert provider.calls == [["chunk numb"]]
        assert report.truncated == 1
        assert report.results[0].truncated is True

    def test_transient_errors_retried(self):
        delays = []

        async def sleep(d):
            delays.append(d)

        provider = ScriptedProvider(
            [RateLimitError(message="slow down", status_code=429), APIError(message="boom", status_code=503)]
        )
        embedder = Embedder(provider, DIMENSION, max_attempts=3, backoff_base=0.5, batch_delay=0, sleep=sleep)

        report = asyncio.run(embedder.embed(make_chunks(3)))

        assert provider.calls == 3
        assert delays == [0.5, 1.0]
        assert report.succeeded == 3
        assert report.failed == {}

    def test_transient_exhaustion_reported_not_raised(self):
        provider = ScriptedProvider([APIError(message="down", status_code=None)] * 5)
        embedder = Embedder(provider, DIMENSION, max_attempts=2, batch_delay=0, sleep=no_sleep)
        chunks = make_chunks(2)

        report = asyncio.run(embedder.embed(chunks))

        assert provider.calls == 2
        assert set(report.failed) == {c.id for c in chunks}
        assert "gave up after 2 attempts" in report.failed[chunks[0].id]

    def test_backoff_capped(self):
        embedder = Embedder(MockEmbeddingProvider(), DIMENSION, backoff_base=1.0, backoff_max=3.0)
        assert [embedder._backoff(a) for a in range(4)] == [1.0, 2.0, 3.0, 3.0]

    def test_bad_input_isolated(self):
        provider = MockEmbeddingProvider(reject=["number 5 "])
        embedder = Embedder(provider, DIMENSION, batch_size=8, batch_delay=0, sleep=no_sleep)
        chunks = make_chunks(8)

        report = asyncio.run(embedder.embed(chunks))

        assert list(report.failed) == [chunks[5].id]
        assert report.succeeded == 7
        assert chunks[5].id not in {r.chunk_id for r in report.results}

    def test_auth_error_raises(self):
        provider = ScriptedProvider([AuthenticationError(message="bad key", status_code=401)])
        embedder = Embedder(provider, DIMENSION, batch_delay=0, sleep=no_sleep)

        with pytest.raises(ProviderAuthError):
            asyncio.run(embedder.embed(make_chunks(1)))
        assert provider.calls == 1

    def test_dimension_mismatch_raises(self):
        provider = MockEmbeddingProvider(dimension=DIMENSION + 1)
        embedder = Embedder(provider, DIMENSION, batch_delay=0, sleep=no_sleep)

        with pytest.raises(DimensionMismatchError) as exc_info:
            asyncio.run(embedder.embed(make_chunks(2)))
        assert exc_info.value.expected == DIMENSION
        assert exc_info.value.actual == DIMENSION + 1

    @pytest.mark.parametrize("kwargs", [{"batch_size": 0}, {"max_attempts": 0}])
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            Embedder(MockEmbeddingProvider(), DIMENSION, **kwargs)


# =============================================================================
# OpenAI-compatible provider
# =============================================================================


def provider_with(handler) -> OpenAIEmbeddingProvider:
    client = httpx.AsyncClient(base_url="https://embed.test/v1", transport=httpx.MockTransport(handler))
    return OpenAIEmbeddingProvider(model="text-embedding-3-small", dimensions=4, client=client)


class TestOpenAIProvider:
    """Tests for the HTTP provider with a mock transport."""

    def test_request_and_ordering(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["payload"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"data": [{"index": 1, "embedding": [2.0] * 4}, {"index": 0, "embedding": [1.0] * 4}]},
            )

        vectors = asyncio.run(provider_with(handler).embed(["a", "b"]))

        assert seen["path"] == "/v1/embeddings"
        assert seen["payload"] == {"model": "text-embedding-3-small", "input": ["a", "b"], "dimensions": 4}
        assert vectors == [[1.0] * 4, [2.0] * 4]

    def test_empty_input_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert asyncio.run(provider_with(handler).embed([])) == []

    @pytest.mark.parametrize(
        "status,error_cls,transient",
        [(401, AuthenticationError, False), (429, RateLimitError, True), (500, APIError, True), (400, APIError, False)],
    )
    def test_error_mapping(self, status, error_cls, transient):
        def handler(request):
            return httpx.Response(status, json={"error": {"message": "nope"}})

        with pytest.raises(error_cls) as exc_info:
            asyncio.run(provider_with(handler).embed(["a"]))
        assert exc_info.value.is_transient is transient
        assert exc_info.value.details == "nope"

    def test_malformed_response(self):
        def handler(request):
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": [1.0] * 4}]})

        with pytest.raises(APIError, match="malformed"):
            asyncio.run(provider_with(handler).embed(["a", "b"]))

    def test_connect_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(APIError) as exc_info:
            asyncio.run(provider_with(handler).embed(["a"]))
        assert exc_info.value.status_code is None
        assert exc_info.value.is_transient
