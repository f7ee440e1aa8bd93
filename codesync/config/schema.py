# codesync/config/schema.py
"""
Pydantic schema for the merged codesync configuration.

Every section forbids unknown keys so a typo in a user override fails
loudly instead of being ignored.
"""

from __future__ import annotations

import os
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EmbeddingSettings(BaseModel):
    """Embedding provider and batching."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI-compatible API base URL")
    api_key_env: str = Field(default="OPENAI_API_KEY", description="Env var holding the API key")
    model: str = Field(default="text-embedding-3-small", description="Embedding model name")
    dimension: int = Field(default=1024, gt=0, description="Vector dimension of the index")
    batch_size: int = Field(default=100, gt=0, description="Texts per provider request")
    max_chars: int = Field(default=8000, gt=0, description="Chunk text is truncated beyond this")
    max_attempts: int = Field(default=3, ge=1, description="Attempts per batch before giving up")
    backoff_base: float = Field(default=0.5, ge=0, description="First retry delay in seconds")
    backoff_max: float = Field(default=8.0, ge=0, description="Upper bound on retry delay")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    batch_delay: float = Field(default=0.1, ge=0, description="Pause between batches")

    def api_key(self) -> Optional[str]:
        return os.environ.get(self.api_key_env)


class VectorIndexSettings(BaseModel):
    """Vector database connection and write policy."""

    model_config = ConfigDict(extra="forbid")

    plugin: Literal["qdrant", "memory"] = Field(default="qdrant", description="Vector store backend")
    index_name: str = Field(default="codesync", description="Collection/index name")
    url: str = Field(default="http://localhost:6333", description="Vector database URL")
    api_key_env: str = Field(default="QDRANT_API_KEY", description="Env var holding the API key")
    batch_size: int = Field(default=100, gt=0, description="Vectors per upsert batch")
    batch_delay: float = Field(default=0.1, ge=0, description="Pause between upsert batches")
    ready_attempts: int = Field(default=60, ge=1, description="Readiness polls before timing out")
    ready_interval: float = Field(default=5.0, ge=0, description="Seconds between readiness polls")
    recreate_delay: float = Field(default=2.0, ge=0, description="Pause after dropping a mismatched index")
    query_top_k: int = Field(default=10000, gt=0, description="Max ids resolved per codebase delete")

    def api_key(self) -> Optional[str]:
        return os.environ.get(self.api_key_env)


class ChunkingSettings(BaseModel):
    """Chunk boundaries."""

    model_config = ConfigDict(extra="forbid")

    max_chunk_lines: int = Field(default=60, gt=0)
    window_lines: int = Field(default=40, gt=0)
    window_overlap: int = Field(default=10, ge=0)
    min_chunk_chars: int = Field(default=50, ge=0)
    max_chunk_chars: int = Field(default=1000, gt=0)
    split_factor: float = Field(default=1.5, ge=1.0)

    @model_validator(mode="after")
    def _overlap_smaller_than_window(self) -> "ChunkingSettings":
        if self.window_overlap >= self.window_lines:
            raise ValueError(
                f"window_overlap ({self.window_overlap}) must be smaller than "
                f"window_lines ({self.window_lines})"
            )
        return self


class RepositorySettings(BaseModel):
    """Repository host access and file filtering."""

    model_config = ConfigDict(extra="forbid")

    token_env: str = Field(default="GITHUB_TOKEN")
    api_url: str = Field(default="https://api.github.com")
    max_file_bytes: int = Field(default=1024 * 1024, gt=0)
    exclude_patterns: List[str] = Field(default_factory=list, description="Extra path regexes to skip")

    def token(self) -> Optional[str]:
        return os.environ.get(self.token_env)


class WebhookSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    secret_env: str = Field(default="CODESYNC_WEBHOOK_SECRET")
    public_url: Optional[str] = Field(default=None, description="URL registered with the repository host")

    def secret(self) -> Optional[str]:
        return os.environ.get(self.secret_env) or None


class ProgressSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    retention_seconds: float = Field(default=3600.0, ge=0)


class StateSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    directory: Optional[str] = Field(default=None, description="Defaults to <workspace>/state")


class CodesyncConfig(BaseModel):
    """Root configuration object."""

    model_config = ConfigDict(extra="forbid")

    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vector_index: VectorIndexSettings = Field(default_factory=VectorIndexSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    progress: ProgressSettings = Field(default_factory=ProgressSettings)
    state: StateSettings = Field(default_factory=StateSettings)


__all__ = [
    "ChunkingSettings",
    "CodesyncConfig",
    "EmbeddingSettings",
    "ProgressSettings",
    "RepositorySettings",
    "StateSettings",
    "VectorIndexSettings",
    "WebhookSettings",
]
