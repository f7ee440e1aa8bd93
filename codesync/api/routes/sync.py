# codesync/api/routes/sync.py
"""Explicit sync trigger."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends

from codesync.api.dependencies import get_service
from codesync.api.error_handlers import handle_api_errors
from codesync.api.models.schemas import SyncAccepted, SyncRequestBody
from codesync.core.exceptions import SyncInProgressError
from codesync.service import SyncService

router = APIRouter(tags=["sync"])


@router.post("/sync", response_model=SyncAccepted, status_code=202)
@handle_api_errors
async def start_sync(
    body: SyncRequestBody,
    background_tasks: BackgroundTasks,
    service: SyncService = Depends(get_service),
) -> SyncAccepted:
    """
    Start an incremental sync of a GitHub repository.

    Returns immediately with a job id; 409 when the repository is already
    syncing.
    """
    request = service.github_request(body.owner, body.name, branch=body.branch, force=body.force)
    try:
        job = service.start_sync(request)
    except SyncInProgressError:
        await request.repository.aclose()
        raise

    background_tasks.add_task(service.run_job, request, job)
    return SyncAccepted(job_id=job.id, codebase_id=request.codebase_id)
