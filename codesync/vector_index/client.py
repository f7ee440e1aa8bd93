# codesync/vector_index/client.py
"""
VectorIndexClient - index lifecycle and batched writes over a VectorStore.

- ensure_index(dimension) is idempotent: creates a missing index, drops and
  recreates one with a different dimension, then polls until ready
- upsert_batch() writes fixed-size batches with a pause in between; a
  failed batch is counted, never raised
- delete_by_codebase() resolves ids with a metadata-only query and then
  deletes by id, because filter deletes are not supported everywhere
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from codesync.config.schema import VectorIndexSettings
from codesync.core.exceptions import DimensionMismatchError, IndexNotReadyError
from codesync.logging.logger import get_logger
from codesync.logging.tags import VECTOR_DB
from codesync.vector_index.base import VectorStore
from codesync.vector_index.types import (
    Filter,
    IndexDescription,
    QueryMatch,
    UpsertResult,
    VectorRecord,
    codebase_filter,
)

logger = get_logger(__name__)

BatchCallback = Callable[[int, int], None]
Sleep = Callable[[float], Awaitable[None]]


class VectorIndexClient:
    def __init__(
        self,
        store: VectorStore,
        batch_size: int = 100,
        batch_delay: float = 0.1,
        ready_attempts: int = 60,
        ready_interval: float = 5.0,
        recreate_delay: float = 2.0,
        query_top_k: int = 10000,
        sleep: Optional[Sleep] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.store = store
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.ready_attempts = ready_attempts
        self.ready_interval = ready_interval
        self.recreate_delay = recreate_delay
        self.query_top_k = query_top_k
        self.dimension: Optional[int] = None
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(
        cls,
        store: VectorStore,
        settings: VectorIndexSettings,
        sleep: Optional[Sleep] = None,
    ) -> "VectorIndexClient":
        return cls(
            store=store,
            batch_size=settings.batch_size,
            batch_delay=settings.batch_delay,
            ready_attempts=settings.ready_attempts,
            ready_interval=settings.ready_interval,
            recreate_delay=settings.recreate_delay,
            query_top_k=settings.query_top_k,
            sleep=sleep,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def ensure_index(self, dimension: int) -> IndexDescription:
        """
        Make sure an index of `dimension` exists and is ready.

        Raises:
            IndexNotReadyError: The index is not ready after ready_attempts polls
        """
        description = await self.store.describe_index()

        if description is None:
            logger.info(f"{VECTOR_DB} Index missing, creating (dimension={dimension})")
            await self.store.create_index(dimension)
        elif description.dimension != dimension:
            logger.warning(
                f"{VECTOR_DB} Index '{description.name}' has dimension {description.dimension}, "
                f"expected {dimension}: recreating"
            )
            await self.store.delete_index()
            if self.recreate_delay:
                await self._sleep(self.recreate_delay)
            await self.store.create_index(dimension)
        elif description.ready:
            self.dimension = dimension
            return description

        for attempt in range(self.ready_attempts):
            description = await self.store.describe_index()
            if description is not None and description.ready and description.dimension == dimension:
                logger.info(f"{VECTOR_DB} Index '{description.name}' ready (dimension={dimension})")
                self.dimension = dimension
                return description
            logger.debug(f"{VECTOR_DB} Waiting for index ({attempt + 1}/{self.ready_attempts})")
            if attempt + 1 < self.ready_attempts:
                await self._sleep(self.ready_interval)

        raise IndexNotReadyError(
            f"Index not ready after {self.ready_attempts} checks "
            f"({self.ready_attempts * self.ready_interval:.0f}s)"
        )

    async def drop_index(self) -> None:
        await self.store.delete_index()
        self.dimension = None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _check_dimensions(self, records: Sequence[VectorRecord]) -> None:
        if self.dimension is None:
            return
        for record in records:
            if record.dimension != self.dimension:
                raise DimensionMismatchError(self.dimension, record.dimension, context=f"record {record.id}")

    async def upsert_batch(
        self,
        records: Sequence[VectorRecord],
        on_batch: Optional[BatchCallback] = None,
    ) -> UpsertResult:
        """
        Write records in batches of batch_size.

        Raises:
            DimensionMismatchError: Before the first batch, if any record's
                dimension differs from the ensured index dimension
        """
        self._check_dimensions(records)

        result = UpsertResult()
        if not records:
            return result

        total = (len(records) + self.batch_size - 1) // self.batch_size
        for batch_num, offset in enumerate(range(0, len(records), self.batch_size), start=1):
            if batch_num > 1 and self.batch_delay:
                await self._sleep(self.batch_delay)

            batch = list(records[offset : offset + self.batch_size])
            try:
                await self.store.upsert(batch)
                result.processed += len(batch)
                logger.debug(f"{VECTOR_DB} Upserted batch {batch_num}/{total} ({len(batch)} vectors)")
            except Exception as e:
                result.errors += len(batch)
                result.failed_ids.extend(r.id for r in batch)
                result.error_messages.append(f"batch {batch_num}/{total}: {e}")
                logger.warning(f"{VECTOR_DB} Upsert batch {batch_num}/{total} failed: {e}")

            if on_batch is not None:
                on_batch(batch_num, total)

        logger.info(f"{VECTOR_DB} Stored {result.processed} vectors ({result.errors} errors)")
        return result

    async def delete_ids(self, ids: Sequence[str]) -> int:
        """Delete by explicit id list, in batches. Returns the number requested."""
        unique = list(dict.fromkeys(ids))
        for offset in range(0, len(unique), self.batch_size):
            await self.store.delete(unique[offset : offset + self.batch_size])
        if unique:
            logger.debug(f"{VECTOR_DB} Deleted {len(unique)} vectors")
        return len(unique)

    async def delete_by_codebase(self, codebase_id: str) -> int:
        """
        Delete every vector tagged with codebase_id.

        Resolves ids with a zero-vector metadata query, repeating while a
        full page comes back. No matches is a no-op.
        """
        deleted = 0
        seen: set[str] = set()
        while True:
            matches = await self.get_by_codebase(codebase_id, top_k=self.query_top_k)
            ids = [m.id for m in matches if m.id not in seen]
            if not ids:
                break
            seen.update(ids)
            deleted += await self.delete_ids(ids)
            if len(matches) < self.query_top_k:
                break

        if deleted:
            logger.info(f"{VECTOR_DB} Deleted {deleted} vectors for codebase '{codebase_id}'")
        else:
            logger.debug(f"{VECTOR_DB} No vectors for codebase '{codebase_id}'")
        return deleted

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _zero_vector(self) -> List[float]:
        dimension = self.dimension
        if dimension is None:
            description = await self.store.describe_index()
            dimension = description.dimension if description is not None else 1
        return [0.0] * dimension

    async def get_by_codebase(self, codebase_id: str, top_k: int = 1) -> List[QueryMatch]:
        """Metadata-only lookup of a codebase's vectors."""
        if await self.store.describe_index() is None:
            return []
        return await self.store.query(await self._zero_vector(), codebase_filter(codebase_id), top_k)

    async def is_indexed(self, codebase_id: str) -> bool:
        return bool(await self.get_by_codebase(codebase_id, top_k=1))

    async def search(
        self,
        vector: Sequence[float],
        filter: Optional[Filter] = None,
        top_k: int = 10,
    ) -> List[QueryMatch]:
        self._check_dimensions([VectorRecord(id="<query>", values=list(vector))])
        return await self.store.query(vector, filter, top_k)

    async def stats(self) -> Optional[IndexDescription]:
        return await self.store.describe_index()

    async def health(self) -> Dict[str, Any]:
        try:
            description = await self.store.describe_index()
        except Exception as e:
            logger.warning(f"{VECTOR_DB} Health check failed: {e}")
            return {"healthy": False, "store": self.store.store_name, "error": str(e)}

        return {
            "healthy": description is not None and description.ready,
            "store": self.store.store_name,
            "index": description.to_dict() if description is not None else None,
        }

    async def close(self) -> None:
        await self.store.close()


__all__ = ["VectorIndexClient"]
