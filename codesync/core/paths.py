# codesync/core/paths.py
"""
Central path management for codesync.

All on-disk locations come from here. The workspace defaults to
{CWD}/.codesync and can be moved with CODESYNC_HOME or set_workspace().
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

WORKSPACE_ENV = "CODESYNC_HOME"


class CodesyncPaths:
    """
    Workspace-relative paths.

    Usage:
        from codesync.core.paths import CodesyncPaths

        config_path = CodesyncPaths.config()
        CodesyncPaths.set_workspace("/tmp/test_codesync")
    """

    _workspace_override: Optional[Path] = None

    @classmethod
    def set_workspace(cls, path: Optional[str | Path]) -> None:
        """Override the workspace root. None resets to the default."""
        cls._workspace_override = None if path is None else Path(path)

    @classmethod
    def reset(cls) -> None:
        cls._workspace_override = None

    @classmethod
    def workspace(cls) -> Path:
        if cls._workspace_override is not None:
            return cls._workspace_override
        env = os.environ.get(WORKSPACE_ENV)
        if env:
            return Path(env)
        return Path.cwd() / ".codesync"

    @classmethod
    def config(cls) -> Path:
        """User config override: {workspace}/config.yaml"""
        return cls.workspace() / "config.yaml"

    @classmethod
    def state_dir(cls) -> Path:
        """Sync records and webhook logs: {workspace}/state/"""
        return cls.workspace() / "state"

    @classmethod
    def ensure(cls, path: Path) -> Path:
        """Create a directory (and parents) if missing and return it."""
        path.mkdir(parents=True, exist_ok=True)
        return path


__all__ = ["CodesyncPaths", "WORKSPACE_ENV"]
