# codesync/vector_index/base.py
"""Protocol for vector database backends."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from codesync.vector_index.types import Filter, IndexDescription, QueryMatch, VectorRecord


@runtime_checkable
class VectorStore(Protocol):
    """
    Low-level operations a vector database must support.

    Stores do not batch, retry or validate; VectorIndexClient does that.
    describe_index() returns None when the index does not exist.
    """

    store_name: str

    async def create_index(self, dimension: int) -> None: ...

    async def describe_index(self) -> Optional[IndexDescription]: ...

    async def delete_index(self) -> None: ...

    async def upsert(self, records: Sequence[VectorRecord]) -> None: ...

    async def delete(self, ids: Sequence[str]) -> None: ...

    async def query(
        self,
        vector: Sequence[float],
        filter: Optional[Filter] = None,
        top_k: int = 10,
    ) -> List[QueryMatch]: ...

    async def close(self) -> None: ...


__all__ = ["VectorStore"]
