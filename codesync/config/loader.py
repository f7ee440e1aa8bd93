# codesync/config/loader.py
"""
Layered configuration loading.

Merge strategy:
    1. Package defaults (codesync/config/defaults/codesync.yaml), always loaded
    2. User config ({workspace}/config.yaml), overrides defaults

The merged dict is validated into CodesyncConfig, so callers never need
fallback logic.

Usage:
    from codesync.config import load_config

    config = load_config()
    config.embedding.dimension
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from codesync.config.schema import CodesyncConfig
from codesync.core.paths import CodesyncPaths
from codesync.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULTS_PATH = Path(__file__).parent / "defaults" / "codesync.yaml"


# =============================================================================
# Errors
# =============================================================================


class ConfigError(Exception):
    """Base error for configuration issues."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            message = f"{message} (file: {path})"
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """Raised when a config file doesn't exist."""

    pass


class ConfigParseError(ConfigError):
    """Raised when YAML parsing fails."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when config doesn't match schema."""

    pass


# =============================================================================
# Deep Merge
# =============================================================================


def deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from `override` take precedence. Nested dicts are merged
    recursively; lists are replaced entirely.

    Examples:
        >>> deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 10}})
        {'a': 1, 'b': {'c': 10, 'd': 3}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


# =============================================================================
# Loading Functions
# =============================================================================


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML file as a mapping.

    Raises:
        ConfigNotFoundError: If file doesn't exist
        ConfigParseError: If YAML is invalid or not a mapping
    """
    p = Path(path)

    if not p.exists():
        raise ConfigNotFoundError("Config file not found", path=p)

    if p.is_dir():
        raise ConfigError("Config path is a directory, not a file", path=p)

    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML syntax: {e}", path=p) from e

    if not isinstance(data, dict):
        raise ConfigParseError("Config root must be a mapping (dict)", path=p)

    logger.debug(f"Loaded config from {p}")
    return data


def load_config_dict(user_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Return package defaults merged with the user override, unvalidated.

    Args:
        user_path: Explicit override file. Defaults to CodesyncPaths.config();
            a missing default override is not an error, a missing explicit one is.
    """
    defaults = load_yaml(DEFAULTS_PATH)

    if user_path is not None:
        override = load_yaml(user_path)
    else:
        default_user_path = CodesyncPaths.config()
        if not default_user_path.exists():
            logger.debug(f"No user config at {default_user_path}, using defaults")
            return defaults
        override = load_yaml(default_user_path)

    return deep_merge(defaults, override)


def load_config(user_path: Optional[Union[str, Path]] = None) -> CodesyncConfig:
    """
    Load and validate the complete configuration.

    Raises:
        ConfigValidationError: If the merged config doesn't match the schema
    """
    data = load_config_dict(user_path)

    try:
        return CodesyncConfig.model_validate(data)
    except PydanticValidationError as e:
        path = Path(user_path) if user_path is not None else CodesyncPaths.config()
        raise ConfigValidationError(f"Invalid configuration: {e}", path=path) from e


__all__ = [
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "DEFAULTS_PATH",
    "deep_merge",
    "load_config",
    "load_config_dict",
    "load_yaml",
]
