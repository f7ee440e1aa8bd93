# codesync/vector_index/plugins/__init__.py
from codesync.vector_index.plugins.memory import InMemoryVectorStore
from codesync.vector_index.plugins.qdrant import QdrantVectorStore, chunk_id_to_point_id

__all__ = ["InMemoryVectorStore", "QdrantVectorStore", "chunk_id_to_point_id"]
