# codesync/cli/cli.py
"""
codesync CLI - Main application.

Commands:
    codesync sync      Sync a directory or GitHub repository into the index
    codesync status    Show the last sync of a codebase
    codesync serve     Start the REST API / webhook server
    codesync config    View configuration

NOTE: Commands use lazy loading - heavy imports only happen when a command is invoked.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from codesync.core.paths import CodesyncPaths
from codesync.logging.logger import configure_logging

app = typer.Typer(
    name="codesync",
    help="codesync - keep a vector index in sync with your code.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    workspace: Optional[Path] = typer.Option(
        None, "--workspace", "-w", help="Workspace directory (default: ./.codesync)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    if workspace is not None:
        CodesyncPaths.set_workspace(workspace)


# =============================================================================
# LAZY COMMANDS
# =============================================================================


@app.command("sync")
def sync(
    target: str = typer.Argument(..., help="Local directory or GitHub owner/name."),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch to sync (GitHub only)."),
    force: bool = typer.Option(False, "--force", "-f", help="Re-index every file."),
) -> None:
    """Sync a repository into the vector index."""
    from codesync.cli.commands import sync as mod

    mod.command(target=target, branch=branch, force=force)


@app.command("status")
def status(codebase_id: str = typer.Argument(..., help="Codebase id, e.g. github_acme_api.")) -> None:
    """Show the last sync record of a codebase."""
    from codesync.cli.commands import status as mod

    mod.command(codebase_id=codebase_id)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to."),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to."),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload."),
) -> None:
    """Start the REST API server."""
    from codesync.cli.commands import serve as mod

    mod.command(host=host, port=port, reload=reload)


@app.command("config")
def config(
    show_path: bool = typer.Option(False, "--path", "-p", help="Show config file path."),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """View configuration."""
    from codesync.cli.commands import config as mod

    mod.command(show_path=show_path, as_json=as_json)


if __name__ == "__main__":
    app()
