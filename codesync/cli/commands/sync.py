# codesync/cli/commands/sync.py
"""
Sync command.

Usage:
    codesync sync ./my-project          # Local directory
    codesync sync acme/api              # GitHub repository, default branch
    codesync sync acme/api -b develop   # Specific branch
    codesync sync ./my-project --force  # Re-index everything
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from codesync.cli.context import CLIContext
from codesync.cli.ui import ui
from codesync.config.loader import ConfigError
from codesync.core.exceptions import CodesyncError
from codesync.logging.logger import get_logger
from codesync.logging.tags import CLI
from codesync.progress.registry import ProgressEvent
from codesync.repository.base import RepositoryRef
from codesync.service import SyncService
from codesync.sync.models import SyncOutcome, SyncRequest, SyncResult

logger = get_logger(__name__)


def _build_request(service: SyncService, target: str, branch: Optional[str], force: bool) -> SyncRequest:
    if Path(target).is_dir():
        return service.local_request(target, force=force)
    ref = RepositoryRef.parse(target, branch=branch)
    return service.github_request(ref.owner, ref.name, branch=branch, force=force, trigger="cli")


async def _run(service: SyncService, request: SyncRequest) -> SyncResult:
    with ui.progress() as progress:
        task = progress.add_task("Starting", total=100)

        def on_event(event: ProgressEvent) -> None:
            progress.update(task, completed=event.progress, description=f"{event.phase.value}: {event.message}")

        service.orchestrator.add_listener(on_event)
        try:
            return await service.sync(request)
        finally:
            await service.close()


def _show_result(result: SyncResult) -> None:
    if result.outcome == SyncOutcome.NO_CHANGES:
        ui.success("Already up to date")
        return

    ui.table(
        "Sync result",
        ["Metric", "Value"],
        [
            ("Changes detected", result.changes_detected),
            ("Files reindexed", result.files_reindexed),
            ("Files deleted", result.files_deleted),
            ("Chunks embedded", result.chunks_embedded),
            ("Chunks reused", result.chunks_reused),
            ("Vectors upserted", result.vectors_upserted),
            ("Vectors deleted", result.vectors_deleted),
            ("Duration", f"{result.duration_seconds:.2f}s"),
        ],
    )
    if result.outcome == SyncOutcome.PARTIAL:
        ui.warning(f"Completed with {len(result.errors)} errors")
        for error in result.errors[:10]:
            ui.info(f"  {error}")
    else:
        ui.success("Sync complete")


def command(target: str, branch: Optional[str] = None, force: bool = False) -> None:
    """Sync a local directory or a GitHub repository into the vector index."""
    try:
        service = CLIContext.load().build_service()
        request = _build_request(service, target, branch, force)
    except (ConfigError, ValueError) as e:
        ui.error(str(e))
        raise typer.Exit(1)

    ui.header("codesync sync", f"{request.full_name} ({request.codebase_id})")
    logger.debug(f"{CLI} sync {request.codebase_id} force={force}")

    try:
        result = asyncio.run(_run(service, request))
    except CodesyncError as e:
        ui.error(f"Sync failed: {e}")
        raise typer.Exit(1)

    _show_result(result)
