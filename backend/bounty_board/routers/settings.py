from __future__ import annotations

from fastapi import APIRouter, HTTPException

from bounty_board.db import queries
from bounty_board.models.schemas import (
    ActionResponse,
    RepositoriesResponse,
    SettingsResponse,
    UpdateSettingsRequest,
)
from bounty_board.models.settings import SettingDecodeError
from bounty_board.services import settings_service

router = APIRouter()


@router.get("/settings", response_model=SettingsResponse)
async def get_settings() -> SettingsResponse:
    return SettingsResponse(settings=await settings_service.get_all_settings())


@router.get("/settings/repositories", response_model=RepositoriesResponse)
async def get_repositories() -> RepositoriesResponse:
    return RepositoriesResponse(repositories=await queries.get_available_repositories())


@router.post("/settings", response_model=ActionResponse)
async def update_settings(req: UpdateSettingsRequest) -> ActionResponse:
    try:
        success, message = await settings_service.update_setting(
            req.setting_key, req.setting_value
        )
    except SettingDecodeError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    if not success:
        raise HTTPException(status_code=400, detail=message)
    return ActionResponse(success=True, message=message)
