# codesync/sync/orchestrator.py
"""
SyncOrchestrator - incremental sync of one repository into the vector index.

Phases (see codesync.progress.phases):
    IDLE -> FETCHING -> DIFFING -> CHUNKING -> EMBEDDING -> UPSERTING -> COMPLETE
    any non-terminal phase -> ERROR

1. FETCHING: resolve the ref and list the repository tree
2. DIFFING: build the Merkle tree and diff it against the last sync record.
   No changes ends the run here with no index, provider or blob calls
3. CHUNKING: fetch and chunk added and modified files
4. EMBEDDING: embed chunks whose id is not already stored for that file
5. UPSERTING: delete stale ids per file, then upsert the new vectors
6. The sync record is written last, so it never claims a state the index
   does not hold

Failures in FETCHING and DIFFING, and FatalConfigError anywhere, end the job
in ERROR. Per-file failures later on are collected; the run still completes,
with outcome PARTIAL, and those files keep their previous state in the record
so the next sync retries them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set

from codesync.chunking.base import CodeChunk
from codesync.chunking.router import ChunkingRouter
from codesync.core.exceptions import FatalConfigError
from codesync.embedding.base import EmbeddingReport, EmbeddingResult
from codesync.embedding.embedder import Embedder
from codesync.logging.logger import get_logger
from codesync.logging.tags import SYNC
from codesync.merkle.diff import ChangeSet, diff_trees
from codesync.merkle.tree import FileRecord, MerkleTree, build_tree
from codesync.progress.phases import SyncPhase, phase_progress
from codesync.progress.registry import JobRegistry, ProgressEvent, SyncJob
from codesync.state.schema import RecordStatus, RepositorySyncRecord
from codesync.state.store import SyncStateStore
from codesync.sync.locks import RepositoryLocks
from codesync.sync.models import SyncOutcome, SyncRequest, SyncResult
from codesync.vector_index.client import VectorIndexClient
from codesync.vector_index.metadata import build_record
from codesync.vector_index.types import VectorRecord

logger = get_logger(__name__)

ProgressListener = Callable[[ProgressEvent], None]


@dataclass
class _Run:
    """Mutable state of one execution."""

    request: SyncRequest
    job: SyncJob
    started: float
    commit: Optional[str] = None
    new_tree: Optional[MerkleTree] = None
    old_tree: Optional[MerkleTree] = None
    record: Optional[RepositorySyncRecord] = None
    changes: ChangeSet = field(default_factory=ChangeSet)
    forced: bool = False
    old_chunks: Dict[str, List[str]] = field(default_factory=dict)
    new_chunks: Dict[str, List[CodeChunk]] = field(default_factory=dict)
    leftover_paths: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    embeddings: Dict[str, EmbeddingResult] = field(default_factory=dict)
    chunks_reused: int = 0
    chunks_embedded: int = 0
    vectors_upserted: int = 0
    vectors_deleted: int = 0
    files_deleted: int = 0

    @property
    def codebase_id(self) -> str:
        return self.request.codebase_id

    def fail(self, path: str, message: str) -> None:
        if path not in self.failed:
            self.failed[path] = message
        self.errors.append(f"{path}: {message}")


class SyncOrchestrator:
    """
    Runs sync jobs.

    Usage:
        orchestrator = SyncOrchestrator(
            chunker=ChunkingRouter.from_settings(config.chunking),
            embedder=embedder,
            vector_index=vector_client,
            state_store=JsonSyncStateStore(paths.state_dir()),
            registry=InMemoryJobRegistry(),
        )
        result = await orchestrator.run(request)

    The API splits run() into start() (lock + job, synchronous so a busy
    repository is rejected before anything is scheduled) and execute().
    """

    def __init__(
        self,
        *,
        chunker: ChunkingRouter,
        embedder: Embedder,
        vector_index: VectorIndexClient,
        state_store: SyncStateStore,
        registry: JobRegistry,
        locks: Optional[RepositoryLocks] = None,
        listeners: Optional[List[ProgressListener]] = None,
    ) -> None:
        self.chunker = chunker
        self.embedder = embedder
        self.vector_index = vector_index
        self.state_store = state_store
        self.registry = registry
        self.locks = locks or RepositoryLocks()
        self._listeners: List[ProgressListener] = list(listeners or [])

    @property
    def embedding_id(self) -> str:
        provider = self.embedder.provider
        return f"{provider.provider_name}:{provider.model}:{self.embedder.dimension}"

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def is_syncing(self, codebase_id: str) -> bool:
        return self.locks.is_locked(codebase_id)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def start(self, request: SyncRequest) -> SyncJob:
        """
        Lock the codebase and register a job.

        Raises:
            SyncInProgressError: A sync for this codebase is already running
        """
        self.locks.acquire(request.codebase_id)
        try:
            return self.registry.create(request.codebase_id, trigger=request.trigger)
        except BaseException:
            self.locks.release(request.codebase_id)
            raise

    def abandon(self, request: SyncRequest, job: SyncJob, error: BaseException) -> None:
        """End a started job that will never execute, and release its lock."""
        message = f"{type(error).__name__}: {error}"
        try:
            self.registry.finish(job.id, SyncPhase.ERROR, message, errors=[message])
        finally:
            self.locks.release(request.codebase_id)
        logger.error(f"{SYNC} Job {job.id} for {request.codebase_id} abandoned before running: {message}")

    async def execute(self, request: SyncRequest, job: SyncJob) -> SyncResult:
        """
        Run a job created by start(). Always releases the codebase lock.

        Raises:
            Whatever ended the job in ERROR, after recording it on the job
        """
        run = _Run(request=request, job=job, started=time.perf_counter())
        logger.info(
            f"{SYNC} Starting sync of {request.full_name} ({request.codebase_id}), "
            f"job={job.id}, trigger={request.trigger}, force={request.force}"
        )
        try:
            result = await self._run_phases(run)
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            logger.error(f"{SYNC} Sync of {request.codebase_id} failed: {message}")
            self.registry.finish(job.id, SyncPhase.ERROR, message, errors=run.errors + [message])
            raise
        finally:
            self.locks.release(request.codebase_id)

        self.registry.finish(
            job.id,
            SyncPhase.COMPLETE,
            _completion_message(result),
            result=result.to_dict(),
            errors=result.errors,
        )
        logger.info(f"{SYNC} {request.codebase_id}: {result} in {result.duration_seconds:.2f}s")
        return result

    async def run(self, request: SyncRequest) -> SyncResult:
        """start() and execute() in one call."""
        job = self.start(request)
        return await self.execute(request, job)

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def _emit(
        self,
        run: _Run,
        phase: SyncPhase,
        message: str,
        done: int = 0,
        total: int = 0,
        error: Optional[str] = None,
        counts: Optional[Dict[str, int]] = None,
    ) -> None:
        event = ProgressEvent(
            job_id=run.job.id,
            codebase_id=run.codebase_id,
            phase=phase,
            progress=phase_progress(phase, done, total),
            message=message,
            processed=done,
            total=total,
            error=error,
            counts=counts or {},
        )
        self.registry.update(event)
        for listener in self._listeners:
            listener(event)

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    async def _run_phases(self, run: _Run) -> SyncResult:
        await self._fetch(run)
        await self._diff(run)

        if run.changes.is_empty and not run.leftover_paths:
            return await self._finish_unchanged(run)

        await self.vector_index.ensure_index(self.embedder.dimension)
        await self._chunk(run)
        await self._embed(run)
        await self._upsert(run)
        await self._persist(run)
        return self._result(run)

    async def _fetch(self, run: _Run) -> None:
        request = run.request
        self._emit(run, SyncPhase.FETCHING, f"Fetching {request.full_name}")

        run.commit = await request.repository.resolve_ref(request.branch)
        files = await request.repository.list_tree(run.commit)
        run.new_tree = build_tree(files, commit=run.commit, branch=request.branch)

        logger.info(
            f"{SYNC} Fetched {len(files)} files at {(run.commit or '')[:12]} "
            f"(root={run.new_tree.root_hash[:19]})"
        )

    async def _diff(self, run: _Run) -> None:
        self._emit(run, SyncPhase.DIFFING, "Computing changes")
        assert run.new_tree is not None

        run.record = await self.state_store.get_sync_record(run.codebase_id)
        if run.record is not None:
            run.old_tree = run.record.merkle_tree()
            run.old_chunks = {path: list(ids) for path, ids in run.record.file_chunks.items()}

        run.forced = run.request.force or self._config_changed(run.record)

        if run.forced:
            changes = diff_trees(None, run.new_tree)
            if run.old_tree is not None:
                changes.deleted = sorted(p for p in run.old_tree.paths() if p not in run.new_tree)
        else:
            changes = diff_trees(run.old_tree, run.new_tree)
        run.changes = changes

        # Ids recorded for paths that are in neither tree (a failed add that
        # later disappeared from the repository).
        known = set(changes.added) | set(changes.modified) | set(changes.deleted)
        run.leftover_paths = sorted(
            path
            for path, ids in run.old_chunks.items()
            if ids and path not in known and path not in run.new_tree
        )

        self._emit(
            run,
            SyncPhase.DIFFING,
            f"{changes.total_changes} changes detected",
            counts={
                "added": len(changes.added),
                "modified": len(changes.modified),
                "deleted": len(changes.deleted),
                "unchanged": len(changes.unchanged),
            },
        )

    def _config_changed(self, record: Optional[RepositorySyncRecord]) -> bool:
        if record is None:
            return False
        reasons = []
        if record.embedding_id is not None and record.embedding_id != self.embedding_id:
            reasons.append(f"embedding {record.embedding_id} -> {self.embedding_id}")
        if record.chunker_id is not None and record.chunker_id != self.chunker.chunker_id:
            reasons.append("chunker settings")
        if reasons:
            logger.info(f"{SYNC} Configuration changed ({', '.join(reasons)}), re-indexing everything")
        return bool(reasons)

    async def _finish_unchanged(self, run: _Run) -> SyncResult:
        logger.info(f"{SYNC} {run.codebase_id} is up to date")
        record = run.record
        if record is not None and run.commit and record.last_commit != run.commit:
            await self.state_store.put_sync_record(
                run.codebase_id,
                record.model_copy(
                    update={"last_commit": run.commit, "updated_at": datetime.now(timezone.utc)}
                ),
            )
        return SyncResult(
            outcome=SyncOutcome.NO_CHANGES,
            codebase_id=run.codebase_id,
            new_root_hash=run.new_tree.root_hash if run.new_tree else None,
            commit=run.commit,
            duration_seconds=time.perf_counter() - run.started,
        )

    async def _chunk(self, run: _Run) -> None:
        paths = run.changes.changed_paths
        total = len(paths)
        self._emit(run, SyncPhase.CHUNKING, f"Chunking {total} files", 0, total)

        for i, path in enumerate(paths, start=1):
            try:
                data = await run.request.repository.get_blob(path, run.commit)
                text = data.decode("utf-8", errors="replace")
                run.new_chunks[path] = self.chunker.chunk_file(path, text)
            except FatalConfigError:
                raise
            except Exception as e:
                run.fail(path, f"chunking failed: {e}")
                logger.warning(f"{SYNC} Failed to chunk {path}: {e}")
            self._emit(run, SyncPhase.CHUNKING, f"Chunked {path}", i, total)

        logger.info(
            f"{SYNC} Chunked {len(run.new_chunks)}/{total} files into "
            f"{sum(len(c) for c in run.new_chunks.values())} chunks"
        )

    def _needs_embedding(self, run: _Run) -> List[CodeChunk]:
        pending: List[CodeChunk] = []
        for path in sorted(run.new_chunks):
            known: Set[str] = set() if run.forced else set(run.old_chunks.get(path, []))
            for chunk in run.new_chunks[path]:
                if chunk.id in known:
                    run.chunks_reused += 1
                else:
                    pending.append(chunk)
        return pending

    async def _embed(self, run: _Run) -> None:
        pending = self._needs_embedding(run)
        total = len(pending)
        self._emit(run, SyncPhase.EMBEDDING, f"Embedding {total} chunks", 0, total)

        def on_batch(done: int, batches: int) -> None:
            processed = min(done * self.embedder.batch_size, total)
            self._emit(
                run,
                SyncPhase.EMBEDDING,
                f"Embedded batch {done}/{batches}",
                processed,
                total,
                counts={"chunks_embedded": processed},
            )

        report: EmbeddingReport = await self.embedder.embed(pending, on_batch=on_batch)
        run.embeddings = {r.chunk_id: r for r in report.results}
        run.chunks_embedded = report.succeeded

        if report.failed:
            by_id = {c.id: c for c in pending}
            for chunk_id, message in report.failed.items():
                chunk = by_id[chunk_id]
                run.fail(chunk.file_path, f"embedding failed: {message}")

    async def _upsert(self, run: _Run) -> None:
        changes = run.changes
        stale_targets = sorted(set(changes.changed_paths) | set(changes.deleted) | set(run.leftover_paths))
        self._emit(run, SyncPhase.UPSERTING, f"Removing stale vectors for {len(stale_targets)} files")

        # Deletes first, per file, so inserts never race an old id.
        for path in stale_targets:
            if path in run.failed:
                continue
            new_ids = {c.id for c in run.new_chunks.get(path, [])}
            stale = [i for i in run.old_chunks.get(path, []) if i not in new_ids]
            if not stale:
                if path in changes.deleted:
                    run.files_deleted += 1
                continue
            try:
                run.vectors_deleted += await self.vector_index.delete_ids(stale)
            except FatalConfigError:
                raise
            except Exception as e:
                run.fail(path, f"deleting stale vectors failed: {e}")
                logger.warning(f"{SYNC} Failed to delete {len(stale)} stale vectors of {path}: {e}")
                continue
            if path in changes.deleted:
                run.files_deleted += 1

        indexed_at = datetime.now(timezone.utc).isoformat()
        records: List[VectorRecord] = []
        owner: Dict[str, str] = {}
        for path in sorted(run.new_chunks):
            if path in run.failed:
                continue
            for chunk in run.new_chunks[path]:
                embedding = run.embeddings.get(chunk.id)
                if embedding is None:
                    continue
                records.append(build_record(chunk, embedding, run.codebase_id, indexed_at))
                owner[chunk.id] = path

        total = len(records)

        def on_batch(done: int, batches: int) -> None:
            processed = min(done * self.vector_index.batch_size, total)
            self._emit(
                run,
                SyncPhase.UPSERTING,
                f"Stored batch {done}/{batches}",
                processed,
                total,
                counts={"vectors_upserted": processed},
            )

        result = await self.vector_index.upsert_batch(records, on_batch=on_batch)
        run.vectors_upserted = result.processed

        if result.failed_ids:
            reason = "; ".join(result.error_messages) or "upsert failed"
            for chunk_id in result.failed_ids:
                path = owner[chunk_id]
                if path not in run.failed:
                    run.fail(path, f"upsert failed: {reason}")

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _final_state(self, run: _Run) -> tuple:
        """Tree and per-file chunk ids the index now reflects."""
        assert run.new_tree is not None
        old_tree = run.old_tree
        old_sizes = old_tree.sizes if old_tree is not None else {}

        files: List[FileRecord] = []
        for record in run.new_tree.records():
            if record.path not in run.failed:
                files.append(record)
            elif old_tree is not None and record.path in old_tree:
                files.append(FileRecord(record.path, old_tree.get(record.path), old_sizes.get(record.path, 0)))

        # Failed deletes keep their old entry so they are retried.
        for path in run.changes.deleted:
            if path in run.failed and old_tree is not None and path in old_tree:
                files.append(FileRecord(path, old_tree.get(path), old_sizes.get(path, 0)))

        tree = build_tree(files, commit=run.commit, branch=run.request.branch)

        file_chunks: Dict[str, List[str]] = {}
        for path, ids in run.old_chunks.items():
            if path in run.failed or (path in tree and path not in run.new_chunks):
                file_chunks[path] = list(ids)
        for path, chunks in run.new_chunks.items():
            new_ids = [c.id for c in chunks]
            if path in run.failed:
                # Some of these may have been written; keep them tracked.
                merged = list(dict.fromkeys(file_chunks.get(path, []) + new_ids))
                file_chunks[path] = merged
            else:
                file_chunks[path] = new_ids

        file_chunks = {path: ids for path, ids in sorted(file_chunks.items()) if ids}
        return tree, file_chunks

    async def _persist(self, run: _Run) -> None:
        tree, file_chunks = self._final_state(run)
        request = run.request
        now = datetime.now(timezone.utc)
        fields = {
            "full_name": request.full_name,
            "owner": request.owner,
            "name": request.name,
            "source": request.repository.source_name,
            "branch": request.branch,
            "last_commit": run.commit,
            "tree": tree.to_dict(),
            "file_chunks": file_chunks,
            "files_count": len(tree),
            "chunks_count": sum(len(ids) for ids in file_chunks.values()),
            "embedding_id": self.embedding_id,
            "chunker_id": self.chunker.chunker_id,
            "status": RecordStatus.ACTIVE,
            "updated_at": now,
        }

        if run.record is None:
            record = RepositorySyncRecord(codebase_id=run.codebase_id, created_at=now, **fields)
        else:
            record = run.record.model_copy(update=fields)

        await self.state_store.put_sync_record(run.codebase_id, record)
        logger.info(
            f"{SYNC} Recorded {run.codebase_id} at {(run.commit or '')[:12]}: "
            f"{record.files_count} files, {record.chunks_count} chunks"
        )

    def _result(self, run: _Run) -> SyncResult:
        changes = run.changes
        reindexed = [p for p in changes.changed_paths if p not in run.failed]
        return SyncResult(
            outcome=SyncOutcome.PARTIAL if run.errors else SyncOutcome.SUCCESS,
            codebase_id=run.codebase_id,
            changes_detected=changes.total_changes,
            files_reindexed=len(reindexed),
            files_deleted=run.files_deleted,
            files_failed=len(run.failed),
            chunks_embedded=run.chunks_embedded,
            chunks_reused=run.chunks_reused,
            vectors_upserted=run.vectors_upserted,
            vectors_deleted=run.vectors_deleted,
            new_root_hash=run.new_tree.root_hash if run.new_tree else None,
            commit=run.commit,
            errors=list(run.errors),
            duration_seconds=time.perf_counter() - run.started,
        )


def _completion_message(result: SyncResult) -> str:
    if result.outcome == SyncOutcome.NO_CHANGES:
        return "No changes"
    if result.outcome == SyncOutcome.PARTIAL:
        return f"Completed with {len(result.errors)} errors"
    return f"Synced {result.files_reindexed} files, removed {result.files_deleted}"


__all__ = ["ProgressListener", "SyncOrchestrator"]
