# codesync/service.py
"""
SyncService - builds every collaborator from a CodesyncConfig.

The API and the CLI both go through this container, so both see the same
orchestrator, job registry and repository locks.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from codesync.chunking.router import ChunkingRouter
from codesync.config.loader import load_config
from codesync.config.schema import CodesyncConfig, VectorIndexSettings
from codesync.core.exceptions import FatalConfigError
from codesync.core.paths import CodesyncPaths
from codesync.embedding.base import EmbeddingProvider
from codesync.embedding.embedder import Embedder
from codesync.embedding.openai import OpenAIEmbeddingProvider
from codesync.logging.logger import get_logger
from codesync.logging.tags import SYNC
from codesync.progress.registry import InMemoryJobRegistry, SyncJob
from codesync.repository.base import RepositoryRef
from codesync.repository.filters import FileFilter
from codesync.repository.github import GitHubRepository
from codesync.repository.local import LocalRepository
from codesync.state.schema import RepositorySyncRecord
from codesync.state.store import JsonSyncStateStore, SyncStateStore
from codesync.sync.models import SyncRequest, SyncResult
from codesync.sync.orchestrator import SyncOrchestrator
from codesync.vector_index.base import VectorStore
from codesync.vector_index.client import VectorIndexClient
from codesync.vector_index.plugins.memory import InMemoryVectorStore
from codesync.vector_index.plugins.qdrant import QdrantVectorStore
from codesync.webhook.ingestor import WebhookIngestor

logger = get_logger(__name__)


def create_vector_store(settings: VectorIndexSettings) -> VectorStore:
    if settings.plugin == "memory":
        return InMemoryVectorStore(name=settings.index_name)
    return QdrantVectorStore.from_settings(settings)


@dataclass
class SyncService:
    config: CodesyncConfig
    orchestrator: SyncOrchestrator
    registry: InMemoryJobRegistry
    state_store: SyncStateStore
    vector_index: VectorIndexClient
    ingestor: WebhookIngestor = field(init=False)

    def __post_init__(self) -> None:
        self.ingestor = WebhookIngestor(
            orchestrator=self.orchestrator,
            state_store=self.state_store,
            repository_factory=self.github_repository,
            secret=self.config.webhook.secret(),
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[CodesyncConfig] = None,
        *,
        provider: Optional[EmbeddingProvider] = None,
        vector_store: Optional[VectorStore] = None,
        state_store: Optional[SyncStateStore] = None,
    ) -> "SyncService":
        """
        Wire the collaborators. Anything passed in replaces the configured one.
        """
        config = config or load_config()

        provider = provider or OpenAIEmbeddingProvider.from_settings(config.embedding)
        embedder = Embedder.from_settings(provider, config.embedding)
        vector_index = VectorIndexClient.from_settings(
            vector_store or create_vector_store(config.vector_index), config.vector_index
        )
        if state_store is None:
            directory = config.state.directory or CodesyncPaths.state_dir()
            state_store = JsonSyncStateStore(directory)

        registry = InMemoryJobRegistry(retention_seconds=config.progress.retention_seconds)
        orchestrator = SyncOrchestrator(
            chunker=ChunkingRouter.from_settings(config.chunking),
            embedder=embedder,
            vector_index=vector_index,
            state_store=state_store,
            registry=registry,
        )

        service = cls(
            config=config,
            orchestrator=orchestrator,
            registry=registry,
            state_store=state_store,
            vector_index=vector_index,
        )
        logger.debug(
            f"{SYNC} Service ready: embedding={orchestrator.embedding_id}, "
            f"store={vector_index.store.store_name}, webhook secret={'***' if config.webhook.secret() else 'unset'}"
        )
        return service

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------

    def github_repository(self, ref: RepositoryRef) -> GitHubRepository:
        return GitHubRepository.from_settings(ref, self.config.repository)

    def local_repository(self, path: Union[str, Path]) -> LocalRepository:
        settings = self.config.repository
        return LocalRepository(path, FileFilter(settings.max_file_bytes, list(settings.exclude_patterns)))

    def github_request(
        self,
        owner: str,
        name: str,
        branch: Optional[str] = None,
        force: bool = False,
        trigger: str = "manual",
    ) -> SyncRequest:
        ref = RepositoryRef(owner=owner, name=name, branch=branch)
        return SyncRequest(
            codebase_id=ref.codebase_id,
            repository=self.github_repository(ref),
            full_name=ref.full_name,
            owner=owner,
            name=name,
            branch=branch,
            force=force,
            trigger=trigger,
        )

    def local_request(self, path: Union[str, Path], force: bool = False, trigger: str = "cli") -> SyncRequest:
        repository = self.local_repository(path)
        return SyncRequest(
            codebase_id=repository.codebase_id,
            repository=repository,
            full_name=str(repository.root),
            name=repository.root.name,
            force=force,
            trigger=trigger,
        )

    # -------------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------------

    def start_sync(self, request: SyncRequest) -> SyncJob:
        """Lock and register; raises SyncInProgressError for a busy codebase."""
        return self.orchestrator.start(request)

    async def run_job(self, request: SyncRequest, job: SyncJob) -> None:
        """Background entry point: the outcome lives on the job."""
        try:
            await self.orchestrator.execute(request, job)
        except Exception as e:
            logger.error(f"{SYNC} Background sync {job.id} ended in error: {e}")
        finally:
            await request.repository.aclose()

    async def sync(self, request: SyncRequest) -> SyncResult:
        try:
            return await self.orchestrator.run(request)
        finally:
            await request.repository.aclose()

    # -------------------------------------------------------------------------
    # Repository records
    # -------------------------------------------------------------------------

    async def get_record(self, codebase_id: str) -> RepositorySyncRecord:
        """
        Raises:
            KeyError: No sync record for codebase_id
        """
        record = await self.state_store.get_sync_record(codebase_id)
        if record is None:
            raise KeyError(f"Unknown codebase: {codebase_id}")
        return record

    async def repository_status(self, codebase_id: str) -> Dict[str, Any]:
        record = await self.get_record(codebase_id)
        summary = record.summary()
        summary["syncing"] = self.orchestrator.is_syncing(codebase_id)
        return summary

    async def register_webhook(self, codebase_id: str) -> Tuple[int, RepositorySyncRecord]:
        """
        Create a push webhook for a synced GitHub repository and store its
        id and a freshly generated secret on the record.

        Raises:
            KeyError: No sync record for codebase_id
            FatalConfigError: webhook.public_url is not configured
            ValueError: The record is not a GitHub repository
            SyncInProgressError: The codebase is syncing
        """
        with self.orchestrator.locks.hold(codebase_id):
            return await self._register_webhook(codebase_id)

    async def _register_webhook(self, codebase_id: str) -> Tuple[int, RepositorySyncRecord]:
        record = await self.get_record(codebase_id)
        public_url = self.config.webhook.public_url
        if not public_url:
            raise FatalConfigError("webhook.public_url must be set to register webhooks")
        if record.source != "github":
            raise ValueError(f"{codebase_id} is a {record.source} repository; webhooks need GitHub")

        secret = secrets.token_hex(32)
        repository = self.github_repository(RepositoryRef.parse(record.full_name))
        try:
            hook_id = await repository.register_webhook(public_url, secret)
        finally:
            await repository.aclose()

        updated = record.model_copy(
            update={
                "webhook_id": hook_id,
                "webhook_secret": secret,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        await self.state_store.put_sync_record(codebase_id, updated)
        logger.info(f"{SYNC} Registered webhook {hook_id} for {record.full_name}")
        return hook_id, updated

    async def delete_vectors(self, codebase_id: str) -> int:
        """
        Remove every vector of a codebase and forget its sync record, so the
        next sync starts from scratch.

        Raises:
            SyncInProgressError: The codebase is syncing
        """
        with self.orchestrator.locks.hold(codebase_id):
            deleted = await self.vector_index.delete_by_codebase(codebase_id)
            await self.state_store.delete_sync_record(codebase_id)
        return deleted

    async def close(self) -> None:
        await self.vector_index.close()
        provider = self.orchestrator.embedder.provider
        aclose = getattr(provider, "aclose", None)
        if aclose is not None:
            await aclose()


__all__ = ["SyncService", "create_vector_store"]
