# codesync/api/routes/webhook.py
"""GitHub webhook receiver."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from codesync.api.dependencies import get_service
from codesync.api.error_handlers import handle_api_errors
from codesync.api.models.schemas import WebhookEventInfo, WebhookEventList
from codesync.service import SyncService

router = APIRouter(prefix="/webhooks/github", tags=["webhooks"])


@router.post("")
@handle_api_errors
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    service: SyncService = Depends(get_service),
) -> JSONResponse:
    """
    Receive a delivery. The signature is checked over the raw body, so the
    body is read as bytes rather than parsed by FastAPI.
    """
    body = await request.body()
    decision = await service.ingestor.handle(request.headers, body)
    if decision.task is not None:
        background_tasks.add_task(decision.task)
    return JSONResponse(status_code=decision.status_code, content=decision.body)


@router.get("/events/{codebase_id}", response_model=WebhookEventList)
@handle_api_errors
async def list_events(
    codebase_id: str,
    limit: int = 20,
    service: SyncService = Depends(get_service),
) -> WebhookEventList:
    """Most recent deliveries for a codebase, newest first."""
    events = await service.state_store.get_webhook_events(codebase_id, limit=limit)
    return WebhookEventList(
        codebase_id=codebase_id,
        events=[
            WebhookEventInfo(
                **event.model_dump(exclude={"codebase_id", "timestamp", "status"}),
                status=event.status.value,
                timestamp=event.timestamp.isoformat(),
            )
            for event in events
        ],
    )
