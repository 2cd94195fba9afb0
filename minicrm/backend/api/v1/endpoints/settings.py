"""
Settings API Endpoints.
"""

from fastapi import APIRouter

from minicrm.backend.core.dependencies import DbSession, OwnerId
from minicrm.backend.schemas.base import ApiResponse
from minicrm.backend.schemas.settings import SettingsResponse, SettingsUpdate
from minicrm.backend.services.settings import SettingsService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[SettingsResponse],
    summary="Get settings",
    description="The caller's settings. Defaults are returned until settings are saved.",
)
async def get_settings(db: DbSession, owner_id: OwnerId) -> ApiResponse[SettingsResponse]:
    service = SettingsService(db)
    return ApiResponse(data=SettingsResponse(**await service.get_settings(owner_id)))


@router.api_route(
    "",
    methods=["PUT", "POST"],
    response_model=ApiResponse[SettingsResponse],
    summary="Save settings",
)
async def save_settings(
    data: SettingsUpdate,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[SettingsResponse]:
    service = SettingsService(db)
    return ApiResponse(data=SettingsResponse(**await service.update_settings(owner_id, data)))
