# codesync/cli/commands/serve.py
"""
API server command.

Usage:
    codesync serve              # Start on default port 8000
    codesync serve --port 3000  # Custom port
    codesync serve --host 0.0.0.0
"""

from __future__ import annotations

import uvicorn

from codesync.cli.ui import console, ui
from codesync.logging.logger import get_logger
from codesync.logging.tags import CLI

logger = get_logger(__name__)


def command(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """
    Start the codesync API server.

    GitHub webhooks go to POST /webhooks/github; interactive docs are at /docs.
    """
    ui.header("codesync API server", f"http://{host}:{port}")
    ui.info(f"API docs: http://{host}:{port}/docs")
    ui.info("Press Ctrl+C to stop")
    console.print()
    logger.debug(f"{CLI} Starting uvicorn on {host}:{port} (reload={reload})")

    uvicorn.run(
        "codesync.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )
