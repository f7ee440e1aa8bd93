# codesync/cli/commands/status.py
"""
Status command.

Usage:
    codesync status github_acme_api
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from codesync.cli.context import CLIContext
from codesync.cli.ui import ui
from codesync.config.loader import ConfigError
from codesync.logging.logger import get_logger
from codesync.logging.tags import CLI
from codesync.service import SyncService
from codesync.state.schema import RepositorySyncRecord

logger = get_logger(__name__)


async def _load(service: SyncService, codebase_id: str) -> tuple:
    indexed: Optional[bool] = None
    try:
        record = await service.state_store.get_sync_record(codebase_id)
        if record is not None:
            try:
                indexed = await service.vector_index.is_indexed(codebase_id)
            except Exception as e:
                logger.warning(f"{CLI} Could not query the vector index: {e}")
    finally:
        await service.close()
    return record, indexed


def _show(record: RepositorySyncRecord, indexed: Optional[bool]) -> None:
    ui.header(record.full_name, record.codebase_id)
    ui.status("Sync record", True, record.updated_at.isoformat())
    ui.status("Vectors in index", bool(indexed), "index unreachable" if indexed is None else "")
    ui.status("Webhook", record.webhook_id is not None, f"id {record.webhook_id}" if record.webhook_id else "")
    ui.table(
        "Last sync",
        ["Field", "Value"],
        [
            ("Branch", record.branch or "(default)"),
            ("Commit", record.last_commit or "-"),
            ("Root hash", record.root_hash or "-"),
            ("Files", record.files_count),
            ("Chunks", record.chunks_count),
            ("Embedding", record.embedding_id or "-"),
            ("Status", record.status.value),
        ],
    )


def command(codebase_id: str) -> None:
    """Show the last sync record of a codebase."""
    try:
        service = CLIContext.load().build_service()
    except ConfigError as e:
        ui.error(str(e))
        raise typer.Exit(1)

    record, indexed = asyncio.run(_load(service, codebase_id))
    if record is None:
        ui.error(f"No sync record for '{codebase_id}'")
        raise typer.Exit(1)
    _show(record, indexed)
