"""
Reminders API Endpoints.

REST API endpoints for reminders and their lifecycle transitions.
Responses carry the computed ``due`` flag and ``state`` at request time.
"""

import datetime as dt

from fastapi import APIRouter, Query

from minicrm.backend.core.dependencies import DbSession, OwnerId
from minicrm.backend.schemas.base import ApiResponse
from minicrm.backend.schemas.reminder import ReminderCreate, ReminderResponse, ReminderUpdate
from minicrm.backend.services.reminder import ReminderService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[ReminderResponse]],
    summary="List reminders",
    description=(
        "Active reminders soonest first, archived reminders most recently "
        "archived first. Without `archived`, active come before archived."
    ),
)
async def list_reminders(
    db: DbSession,
    owner_id: OwnerId,
    client_id: str | None = Query(default=None, alias="clientId"),
    archived: bool | None = Query(default=None),
    on_date: dt.date | None = Query(default=None, alias="date"),
) -> ApiResponse[list[ReminderResponse]]:
    service = ReminderService(db)
    reminders = await service.list_reminders(
        owner_id,
        client_id=client_id or None,
        archived=archived,
        on_date=on_date,
    )
    now = service.now()
    return ApiResponse(data=[ReminderResponse.from_reminder(r, now) for r in reminders])


@router.get(
    "/due",
    response_model=ApiResponse[list[ReminderResponse]],
    summary="List due reminders",
    description="Active reminders whose date and time have passed and that were not yet notified.",
)
async def list_due_reminders(
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[list[ReminderResponse]]:
    service = ReminderService(db)
    now = service.now()
    reminders = await service.list_due(owner_id, now)
    return ApiResponse(data=[ReminderResponse.from_reminder(r, now) for r in reminders])


@router.post(
    "",
    response_model=ApiResponse[ReminderResponse],
    status_code=201,
    summary="Create a reminder",
)
async def create_reminder(
    data: ReminderCreate,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ReminderResponse]:
    service = ReminderService(db)
    reminder = await service.create_reminder(owner_id, data)
    return ApiResponse(data=ReminderResponse.from_reminder(reminder, service.now()))


@router.get(
    "/{reminder_id}",
    response_model=ApiResponse[ReminderResponse],
    summary="Get a reminder",
)
async def get_reminder(
    reminder_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ReminderResponse]:
    service = ReminderService(db)
    reminder = await service.get_reminder(owner_id, reminder_id)
    return ApiResponse(data=ReminderResponse.from_reminder(reminder, service.now()))


@router.api_route(
    "/{reminder_id}",
    methods=["PATCH", "PUT"],
    response_model=ApiResponse[ReminderResponse],
    summary="Update a reminder",
    description="Partial update. `notified` and `archived` are applied as lifecycle transitions.",
)
async def update_reminder(
    reminder_id: str,
    data: ReminderUpdate,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ReminderResponse]:
    service = ReminderService(db)
    reminder = await service.update_reminder(owner_id, reminder_id, data)
    return ApiResponse(data=ReminderResponse.from_reminder(reminder, service.now()))


@router.post(
    "/{reminder_id}/notified",
    response_model=ApiResponse[ReminderResponse],
    summary="Mark a reminder notified",
    description="Marks the reminder notified and archives it. Repeating the call changes nothing.",
)
async def mark_reminder_notified(
    reminder_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ReminderResponse]:
    service = ReminderService(db)
    reminder = await service.mark_notified(owner_id, reminder_id)
    return ApiResponse(data=ReminderResponse.from_reminder(reminder, service.now()))


@router.post(
    "/{reminder_id}/archive",
    response_model=ApiResponse[ReminderResponse],
    summary="Archive a reminder",
)
async def archive_reminder(
    reminder_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ReminderResponse]:
    service = ReminderService(db)
    reminder = await service.archive_reminder(owner_id, reminder_id)
    return ApiResponse(data=ReminderResponse.from_reminder(reminder, service.now()))


@router.delete(
    "/{reminder_id}",
    status_code=204,
    summary="Delete a reminder",
)
async def delete_reminder(
    reminder_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> None:
    service = ReminderService(db)
    await service.delete_reminder(owner_id, reminder_id)
