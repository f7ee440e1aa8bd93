# codesync/cli/context.py
"""
CLI context: the merged configuration and the service built from it.

Usage:
    ctx = CLIContext.load()
    service = ctx.build_service()
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from codesync.config.loader import load_config
from codesync.config.schema import CodesyncConfig
from codesync.core.paths import CodesyncPaths
from codesync.service import SyncService


@dataclass
class CLIContext:
    config: CodesyncConfig
    config_path: Path
    has_user_config: bool

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CLIContext":
        """
        Raises:
            ConfigError: The user config is unreadable or invalid
        """
        path = Path(config_path) if config_path else CodesyncPaths.config()
        return cls(
            config=load_config(path if path.exists() else None),
            config_path=path,
            has_user_config=path.exists(),
        )

    def build_service(self) -> SyncService:
        return SyncService.from_config(self.config)


__all__ = ["CLIContext"]
