# tests/conftest.py
"""
Shared fakes and fixtures.

Test Tiers:
- tier1: pure logic, no I/O (hashing, merkle, chunking, phases)
- tier2: mocked collaborators (orchestrator, API, CLI, stores)

Nothing here talks to a real service: the embedding provider, repository
host and vector database are all in-process fakes.
"""

from __future__ import annotations

import hashlib
from typing import Dict, List, Optional, Sequence, Set

import pytest

from codesync.chunking.router import ChunkingRouter
from codesync.config.schema import ChunkingSettings, CodesyncConfig
from codesync.core.exceptions import RepositoryError
from codesync.core.hashing import compute_bytes_hash
from codesync.core.http import APIError
from codesync.core.paths import CodesyncPaths
from codesync.embedding.embedder import Embedder
from codesync.merkle.tree import FileRecord
from codesync.progress.registry import InMemoryJobRegistry
from codesync.state.store import InMemorySyncStateStore
from codesync.sync.models import SyncRequest
from codesync.sync.orchestrator import SyncOrchestrator
from codesync.vector_index.client import VectorIndexClient
from codesync.vector_index.plugins.memory import InMemoryVectorStore
from codesync.vector_index.types import VectorRecord

DIMENSION = 8


async def no_sleep(_: float) -> None:
    return None


# =============================================================================
# Embedding provider
# =============================================================================


class MockEmbeddingProvider:
    """
    Deterministic vectors derived from the text's hash.

    Texts containing a string from `reject` make the whole request fail with
    a non-transient 400, which the embedder answers by halving the batch.
    """

    provider_name = "mock"

    def __init__(self, dimension: int = DIMENSION, model: str = "mock-embed", reject: Sequence[str] = ()):
        self.dimension = dimension
        self.model = model
        self.reject = list(reject)
        self.calls: List[List[str]] = []

    @property
    def texts_embedded(self) -> int:
        return sum(len(batch) for batch in self.calls)

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        for text in texts:
            if any(marker in text for marker in self.reject):
                raise APIError(message="mock rejected input", status_code=400, provider="mock")
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> List[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [(digest[i % len(digest)] + 1) / 256.0 for i in range(self.dimension)]


# =============================================================================
# Repository
# =============================================================================


class MockRepository:
    """
    Repository held in a dict. Each mutation bumps the commit.

    Blob hashes are sha256 of content, as for local directories.
    """

    source_name = "github"

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, bytes] = {p: c.encode("utf-8") for p, c in (files or {}).items()}
        self.version = 1
        self.blob_requests: List[str] = []
        self.broken_blobs: Set[str] = set()
        self.closed = False
        self.hooks: List[Dict[str, str]] = []

    def write(self, path: str, content: str) -> None:
        self.files[path] = content.encode("utf-8")
        self.version += 1

    def remove(self, path: str) -> None:
        del self.files[path]
        self.version += 1

    async def resolve_ref(self, ref: Optional[str] = None) -> str:
        return f"commit-{self.version:04d}"

    async def list_tree(self, ref: Optional[str] = None) -> List[FileRecord]:
        return [
            FileRecord(path=path, content_hash=compute_bytes_hash(data), size=len(data))
            for path, data in sorted(self.files.items())
        ]

    async def get_blob(self, path: str, ref: Optional[str] = None) -> bytes:
        self.blob_requests.append(path)
        if path in self.broken_blobs:
            raise RepositoryError(f"cannot fetch {path}")
        return self.files[path]

    async def register_webhook(self, url: str, secret: str) -> int:
        self.hooks.append({"url": url, "secret": secret})
        return 4242

    async def aclose(self) -> None:
        self.closed = True


# =============================================================================
# Vector store
# =============================================================================


class RecordingVectorStore(InMemoryVectorStore):
    """InMemoryVectorStore that counts writes and can fail on demand."""

    def __init__(self, name: str = "test"):
        super().__init__(name)
        self.upserted: List[str] = []
        self.deleted: List[str] = []
        self.fail_upserts = False
        self.fail_deletes = False

    async def upsert(self, records: Sequence[VectorRecord]) -> None:
        if self.fail_upserts:
            raise RuntimeError("upsert rejected")
        await super().upsert(records)
        self.upserted.extend(r.id for r in records)

    async def delete(self, ids: Sequence[str]) -> None:
        if self.fail_deletes:
            raise RuntimeError("delete rejected")
        await super().delete(ids)
        self.deleted.extend(ids)

    @property
    def writes(self) -> int:
        return len(self.upserted) + len(self.deleted)


# =============================================================================
# Orchestrator harness
# =============================================================================


class SyncHarness:
    """Orchestrator wired to fakes, with the fakes exposed for assertions."""

    def __init__(self, provider: Optional[MockEmbeddingProvider] = None, dimension: int = DIMENSION):
        self.provider = provider or MockEmbeddingProvider(dimension=dimension)
        self.store = RecordingVectorStore()
        self.state = InMemorySyncStateStore()
        self.registry = InMemoryJobRegistry()
        self.vector_index = VectorIndexClient(self.store, batch_size=50, batch_delay=0, sleep=no_sleep)
        self.embedder = Embedder(self.provider, dimension=dimension, batch_size=10, batch_delay=0, sleep=no_sleep)
        self.events: list = []
        self.orchestrator = SyncOrchestrator(
            chunker=ChunkingRouter.from_settings(ChunkingSettings()),
            embedder=self.embedder,
            vector_index=self.vector_index,
            state_store=self.state,
            registry=self.registry,
            listeners=[self.events.append],
        )

    def request(self, repository: MockRepository, force: bool = False, codebase_id: str = "github_acme_api") -> SyncRequest:
        return SyncRequest(
            codebase_id=codebase_id,
            repository=repository,
            full_name="acme/api",
            owner="acme",
            name="api",
            force=force,
        )


@pytest.fixture
def harness() -> SyncHarness:
    return SyncHarness()


@pytest.fixture
def repo() -> MockRepository:
    return MockRepository(
        {
            "src/a.ts": "export function alpha(x: number) {\n  return x + 1;\n}\n",
            "src/b.ts": "export function beta(y: number) {\n  return y * 2;\n}\n",
        }
    )


@pytest.fixture
def memory_config(tmp_path) -> CodesyncConfig:
    """Config with the in-memory vector store and a state dir under tmp_path."""
    return CodesyncConfig.model_validate(
        {
            "embedding": {"dimension": DIMENSION, "batch_delay": 0},
            "vector_index": {"plugin": "memory", "batch_delay": 0, "recreate_delay": 0},
            "state": {"directory": str(tmp_path / "state")},
            "webhook": {"secret_env": "CODESYNC_TEST_WEBHOOK_SECRET"},
        }
    )


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Every test gets its own workspace so no real config is picked up."""
    monkeypatch.delenv("CODESYNC_HOME", raising=False)
    CodesyncPaths.set_workspace(tmp_path / ".codesync")
    yield
    CodesyncPaths.reset()
