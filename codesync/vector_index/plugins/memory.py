# codesync/vector_index/plugins/memory.py
"""
In-process vector store backed by numpy.

Used for local runs without a vector database and throughout the tests.
Queries rank by cosine similarity; a zero query vector scores every match 0
and so reduces to a metadata-only lookup.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from codesync.logging.logger import get_logger
from codesync.logging.tags import VECTOR_DB
from codesync.vector_index.types import Filter, IndexDescription, QueryMatch, VectorRecord

logger = get_logger(__name__)


class InMemoryVectorStore:
    store_name = "memory"

    def __init__(self, name: str = "codesync") -> None:
        self.name = name
        self._dimension: Optional[int] = None
        self._records: Dict[str, VectorRecord] = {}

    # -------------------------------------------------------------------------
    # Index lifecycle
    # -------------------------------------------------------------------------

    async def create_index(self, dimension: int) -> None:
        logger.info(f"{VECTOR_DB} [memory] Creating index '{self.name}' (dimension={dimension})")
        self._dimension = dimension
        self._records = {}

    async def describe_index(self) -> Optional[IndexDescription]:
        if self._dimension is None:
            return None
        return IndexDescription(
            name=self.name,
            dimension=self._dimension,
            ready=True,
            vector_count=len(self._records),
        )

    async def delete_index(self) -> None:
        logger.info(f"{VECTOR_DB} [memory] Deleting index '{self.name}'")
        self._dimension = None
        self._records = {}

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    def _require_index(self) -> int:
        if self._dimension is None:
            raise RuntimeError(f"Index '{self.name}' does not exist")
        return self._dimension

    async def upsert(self, records: Sequence[VectorRecord]) -> None:
        dimension = self._require_index()
        for record in records:
            if record.dimension != dimension:
                raise ValueError(
                    f"Vector {record.id} has dimension {record.dimension}, index expects {dimension}"
                )
        for record in records:
            self._records[record.id] = VectorRecord(
                id=record.id, values=list(record.values), metadata=dict(record.metadata)
            )

    async def delete(self, ids: Sequence[str]) -> None:
        self._require_index()
        for record_id in ids:
            self._records.pop(record_id, None)

    async def query(
        self,
        vector: Sequence[float],
        filter: Optional[Filter] = None,
        top_k: int = 10,
    ) -> List[QueryMatch]:
        self._require_index()
        candidates = [r for r in self._records.values() if filter is None or filter.matches(r.metadata)]
        if not candidates:
            return []

        query = np.asarray(vector, dtype=np.float64)
        matrix = np.asarray([r.values for r in candidates], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        # Stable ordering: score descending, then id.
        order = sorted(range(len(candidates)), key=lambda i: (-scores[i], candidates[i].id))
        return [
            QueryMatch(id=candidates[i].id, score=float(scores[i]), metadata=dict(candidates[i].metadata))
            for i in order[:top_k]
        ]

    async def close(self) -> None:
        return None

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def ids(self) -> List[str]:
        return sorted(self._records)

    def get(self, record_id: str) -> Optional[VectorRecord]:
        return self._records.get(record_id)

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["InMemoryVectorStore"]
