# codesync/api/routes/progress.py
"""Job progress polling."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from codesync.api.dependencies import get_service
from codesync.api.error_handlers import handle_api_errors
from codesync.api.models.schemas import JobList, JobStatus
from codesync.service import SyncService

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("", response_model=JobList)
@handle_api_errors
async def list_jobs(
    codebase_id: Optional[str] = None,
    service: SyncService = Depends(get_service),
) -> JobList:
    """List retained jobs, newest first."""
    return JobList(jobs=[JobStatus(**job.to_dict()) for job in service.registry.list(codebase_id)])


@router.get("/{job_id}", response_model=JobStatus)
@handle_api_errors
async def get_job(job_id: str, service: SyncService = Depends(get_service)) -> JobStatus:
    job = service.registry.get(job_id)
    if job is None:
        raise KeyError(f"Unknown job: {job_id}")
    return JobStatus(**job.to_dict())


@router.delete("/{job_id}", status_code=204)
@handle_api_errors
async def delete_job(job_id: str, service: SyncService = Depends(get_service)) -> None:
    """Forget a finished job. Running jobs answer 409."""
    if not service.registry.delete(job_id):
        raise KeyError(f"Unknown job: {job_id}")
