# codesync/logging/logger.py
"""
Unified logging setup for codesync.

Every module uses:
    from codesync.logging.logger import get_logger
    logger = get_logger(__name__)

Configuration (format, level, handler) happens once in configure_logging(),
normally from the CLI entrypoint or the API server.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

DEFAULT_FORMAT = "[%(levelname)s] %(name)s - %(message)s"


def configure_logging(
    level: int = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: TextIO = sys.stdout,
) -> None:
    """
    Configure the root logging handler.

    Calling it again only changes the level; no second handler is added.
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger. Does not configure anything."""
    return logging.getLogger(name)


__all__ = ["DEFAULT_FORMAT", "configure_logging", "get_logger"]
