"""
Notes API Endpoints.

REST API endpoints for note management.
"""

from fastapi import APIRouter, Query

from minicrm.backend.core.dependencies import DbSession, OwnerId
from minicrm.backend.schemas.base import ApiResponse
from minicrm.backend.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from minicrm.backend.services.note import NoteService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[NoteResponse]],
    summary="List notes",
    description="List the caller's notes, newest first, optionally for one client.",
)
async def list_notes(
    db: DbSession,
    owner_id: OwnerId,
    client_id: str | None = Query(default=None, alias="clientId"),
) -> ApiResponse[list[NoteResponse]]:
    service = NoteService(db)
    notes = await service.list_notes(owner_id, client_id=client_id or None)
    return ApiResponse(data=[NoteResponse.model_validate(note) for note in notes])


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
)
async def create_note(
    data: NoteCreate,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[NoteResponse]:
    service = NoteService(db)
    note = await service.create_note(owner_id, data)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
)
async def get_note(
    note_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[NoteResponse]:
    service = NoteService(db)
    note = await service.get_note(owner_id, note_id)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.patch(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Update a note's text or attached client.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[NoteResponse]:
    service = NoteService(db)
    note = await service.update_note(owner_id, note_id, data)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.delete(
    "/{note_id}",
    status_code=204,
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> None:
    service = NoteService(db)
    await service.delete_note(owner_id, note_id)
