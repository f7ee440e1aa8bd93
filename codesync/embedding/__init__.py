# codesync/embedding/__init__.py
from codesync.embedding.base import EmbeddingProvider, EmbeddingReport, EmbeddingResult
from codesync.embedding.embedder import Embedder, truncate_text
from codesync.embedding.openai import OpenAIEmbeddingProvider

__all__ = [
    "Embedder",
    "EmbeddingProvider",
    "EmbeddingReport",
    "EmbeddingResult",
    "OpenAIEmbeddingProvider",
    "truncate_text",
]
