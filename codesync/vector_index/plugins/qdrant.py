# codesync/vector_index/plugins/qdrant.py
"""
Qdrant-backed vector store.

Thin wrapper around `qdrant_client.AsyncQdrantClient`. Qdrant point ids must
be unsigned ints or UUIDs, so chunk ids are mapped to UUIDv5 and the chunk
id itself travels in the payload under "chunk_id".
"""

from __future__ import annotations

import uuid
from typing import Any, List, Optional, Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as rest

from codesync.config.schema import VectorIndexSettings
from codesync.logging.logger import get_logger
from codesync.logging.tags import VECTOR_DB
from codesync.vector_index.types import Eq, Filter, IndexDescription, QueryMatch, VectorRecord

logger = get_logger(__name__)

# RFC 4122 URL namespace
_NAMESPACE = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")

CHUNK_ID_KEY = "chunk_id"
INDEXED_FIELDS = ("codebase_id", "original_file_path", "language")


def chunk_id_to_point_id(chunk_id: str) -> str:
    """Deterministic UUID for a chunk id."""
    return str(uuid.uuid5(_NAMESPACE, chunk_id))


def to_qdrant_filter(filter: Optional[Filter]) -> Optional[rest.Filter]:
    if filter is None or not filter.clauses:
        return None
    must = []
    for clause in filter.clauses:
        if isinstance(clause, Eq):
            match: Any = rest.MatchValue(value=clause.value)
        else:
            match = rest.MatchAny(any=list(clause.values))
        must.append(rest.FieldCondition(key=clause.field, match=match))
    return rest.Filter(must=must)


class QdrantVectorStore:
    store_name = "qdrant"

    def __init__(
        self,
        collection: str,
        url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        client: Optional[AsyncQdrantClient] = None,
    ) -> None:
        self.collection = collection
        logger.info(
            f"{VECTOR_DB} Initializing AsyncQdrantClient: url={url}, "
            f"collection={collection}, api_key={'***' if api_key else '<none>'}"
        )
        self._client = client or AsyncQdrantClient(url=url, api_key=api_key)

    @classmethod
    def from_settings(cls, settings: VectorIndexSettings) -> "QdrantVectorStore":
        return cls(collection=settings.index_name, url=settings.url, api_key=settings.api_key())

    # -------------------------------------------------------------------------
    # Index lifecycle
    # -------------------------------------------------------------------------

    async def create_index(self, dimension: int) -> None:
        logger.info(f"{VECTOR_DB} Creating collection '{self.collection}' (dimension={dimension})")
        await self._client.create_collection(
            collection_name=self.collection,
            vectors_config=rest.VectorParams(size=dimension, distance=rest.Distance.COSINE),
        )
        for field_name in INDEXED_FIELDS:
            await self._client.create_payload_index(
                collection_name=self.collection,
                field_name=field_name,
                field_schema=rest.PayloadSchemaType.KEYWORD,
            )

    async def describe_index(self) -> Optional[IndexDescription]:
        if not await self._client.collection_exists(collection_name=self.collection):
            return None

        info = await self._client.get_collection(collection_name=self.collection)
        vectors = info.config.params.vectors
        if isinstance(vectors, dict):
            # Named vectors: this store only ever creates the unnamed one.
            vectors = next(iter(vectors.values()))

        return IndexDescription(
            name=self.collection,
            dimension=vectors.size,
            ready=info.status == rest.CollectionStatus.GREEN,
            vector_count=info.points_count or 0,
            metric=str(getattr(vectors.distance, "value", vectors.distance)).lower(),
        )

    async def delete_index(self) -> None:
        logger.info(f"{VECTOR_DB} Deleting collection '{self.collection}'")
        await self._client.delete_collection(collection_name=self.collection)

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    async def upsert(self, records: Sequence[VectorRecord]) -> None:
        points = [
            rest.PointStruct(
                id=chunk_id_to_point_id(record.id),
                vector=list(record.values),
                payload={**record.metadata, CHUNK_ID_KEY: record.id},
            )
            for record in records
        ]
        await self._client.upsert(collection_name=self.collection, points=points, wait=True)

    async def delete(self, ids: Sequence[str]) -> None:
        if not ids:
            return
        await self._client.delete(
            collection_name=self.collection,
            points_selector=rest.PointIdsList(points=[chunk_id_to_point_id(i) for i in ids]),
            wait=True,
        )

    async def query(
        self,
        vector: Sequence[float],
        filter: Optional[Filter] = None,
        top_k: int = 10,
    ) -> List[QueryMatch]:
        qfilter = to_qdrant_filter(filter)

        if not any(vector):
            # Cosine similarity is undefined for a zero vector: use a filtered scroll.
            points, _ = await self._client.scroll(
                collection_name=self.collection,
                scroll_filter=qfilter,
                limit=top_k,
                with_payload=True,
                with_vectors=False,
            )
            return [self._to_match(p.payload or {}, p.id, 0.0) for p in points]

        response = await self._client.query_points(
            collection_name=self.collection,
            query=list(vector),
            query_filter=qfilter,
            limit=top_k,
            with_payload=True,
        )
        return [self._to_match(p.payload or {}, p.id, p.score) for p in response.points]

    @staticmethod
    def _to_match(payload: dict, point_id: Any, score: float) -> QueryMatch:
        metadata = {k: v for k, v in payload.items() if k != CHUNK_ID_KEY}
        return QueryMatch(id=str(payload.get(CHUNK_ID_KEY, point_id)), score=float(score), metadata=metadata)

    async def close(self) -> None:
        await self._client.close()


__all__ = ["QdrantVectorStore", "chunk_id_to_point_id", "to_qdrant_filter"]
