# codesync/api/routes/health.py
"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from codesync.api.dependencies import get_codesync_version, get_service
from codesync.api.models.schemas import HealthResponse
from codesync.service import SyncService

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(service: SyncService = Depends(get_service)) -> HealthResponse:
    """
    Health check endpoint.

    Reports the vector index state and the number of syncs in flight.
    """
    index = await service.vector_index.health()
    return HealthResponse(
        status="healthy" if index.get("healthy") else "degraded",
        version=get_codesync_version(),
        vector_index=index,
        active_syncs=len(service.orchestrator.locks.active()),
    )
