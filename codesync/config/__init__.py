# codesync/config/__init__.py
from codesync.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    deep_merge,
    load_config,
    load_config_dict,
    load_yaml,
)
from codesync.config.schema import (
    ChunkingSettings,
    CodesyncConfig,
    EmbeddingSettings,
    ProgressSettings,
    RepositorySettings,
    StateSettings,
    VectorIndexSettings,
    WebhookSettings,
)

__all__ = [
    "ChunkingSettings",
    "CodesyncConfig",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "EmbeddingSettings",
    "ProgressSettings",
    "RepositorySettings",
    "StateSettings",
    "VectorIndexSettings",
    "WebhookSettings",
    "deep_merge",
    "load_config",
    "load_config_dict",
    "load_yaml",
]
