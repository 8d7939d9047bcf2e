from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends

from bounty_board.db import queries
from bounty_board.models.schemas import FreshnessResponse, JobStatus, RefreshResponse
from bounty_board.services.refresh_service import RefreshService, get_refresh_service

router = APIRouter()


@router.post("/jobs/refresh", response_model=RefreshResponse)
async def trigger_refresh(
    background_tasks: BackgroundTasks,
    wait: bool = False,
    service: RefreshService = Depends(get_refresh_service),
) -> RefreshResponse:
    if service.running:
        return RefreshResponse(success=False, message="Refresh already in progress")

    if not wait:
        background_tasks.add_task(service.refresh, "manual")
        return RefreshResponse(success=True, message="Refresh job started")

    report = await service.refresh("manual")
    if report.succeeded:
        message = "Data refresh completed successfully"
    else:
        message = "Data refresh failed"
    return RefreshResponse(success=report.succeeded, message=message, report=report.to_dict())


@router.get("/jobs/status", response_model=JobStatus)
async def job_status(service: RefreshService = Depends(get_refresh_service)) -> JobStatus:
    last = service.last_report
    return JobStatus(
        state=service.state.value,
        running=service.running,
        last_report=last.to_dict() if last else None,
    )


@router.get("/freshness", response_model=FreshnessResponse)
async def freshness() -> FreshnessResponse:
    return FreshnessResponse(**await queries.get_data_freshness())
