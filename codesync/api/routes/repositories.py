# codesync/api/routes/repositories.py
"""Synced repository records and their vectors."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from codesync.api.dependencies import get_service
from codesync.api.error_handlers import handle_api_errors
from codesync.api.models.schemas import RepositoryInfo, VectorsDeleted, WebhookRegistered
from codesync.service import SyncService

router = APIRouter(prefix="/repositories", tags=["repositories"])


@router.get("/{codebase_id}", response_model=RepositoryInfo)
@handle_api_errors
async def get_repository(codebase_id: str, service: SyncService = Depends(get_service)) -> RepositoryInfo:
    return RepositoryInfo(**await service.repository_status(codebase_id))


@router.post("/{codebase_id}/webhook", response_model=WebhookRegistered, status_code=201)
@handle_api_errors
async def register_webhook(codebase_id: str, service: SyncService = Depends(get_service)) -> WebhookRegistered:
    """Register a push webhook pointing at webhook.public_url."""
    hook_id, _ = await service.register_webhook(codebase_id)
    return WebhookRegistered(codebase_id=codebase_id, webhook_id=hook_id)


@router.delete("/{codebase_id}/vectors", response_model=VectorsDeleted)
@handle_api_errors
async def delete_vectors(codebase_id: str, service: SyncService = Depends(get_service)) -> VectorsDeleted:
    """Remove every vector of the codebase and its sync record."""
    deleted = await service.delete_vectors(codebase_id)
    return VectorsDeleted(codebase_id=codebase_id, deleted=deleted)
