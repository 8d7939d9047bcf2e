from __future__ import annotations

from typing import get_args

from fastapi import APIRouter, HTTPException

from bounty_board.db import queries
from bounty_board.models.schemas import (
    ActionResponse,
    IssueStatusType,
    StatusCounts,
    UpdateStatusRequest,
)

router = APIRouter()

VALID_STATUSES = set(get_args(IssueStatusType))


@router.post("/status", response_model=ActionResponse)
async def update_status(req: UpdateStatusRequest) -> ActionResponse:
    if req.status is not None and req.status not in VALID_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status: {req.status}")
    found = await queries.update_issue_status(req.github_id, req.status)
    if not found:
        raise HTTPException(status_code=400, detail="Issue not found")
    return ActionResponse(success=True)


@router.get("/status/counts", response_model=StatusCounts)
async def status_counts() -> StatusCounts:
    return StatusCounts(**await queries.get_issue_status_counts())
