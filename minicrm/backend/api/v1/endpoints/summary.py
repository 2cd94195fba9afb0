"""
Summary API Endpoint.
"""

from fastapi import APIRouter

from minicrm.backend.core.dependencies import DbSession, OwnerId
from minicrm.backend.schemas.base import ApiResponse
from minicrm.backend.schemas.summary import SummaryResponse
from minicrm.backend.services.reminder import ReminderService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[SummaryResponse],
    summary="Home screen counts",
)
async def get_summary(db: DbSession, owner_id: OwnerId) -> ApiResponse[SummaryResponse]:
    service = ReminderService(db)
    return ApiResponse(data=SummaryResponse(**await service.count_summary(owner_id)))
