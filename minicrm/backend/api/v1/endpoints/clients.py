"""
Clients API Endpoints.

REST API endpoints for client management.
"""

from fastapi import APIRouter, Query

from minicrm.backend.core.dependencies import DbSession, OwnerId
from minicrm.backend.schemas.base import ApiResponse
from minicrm.backend.schemas.client import (
    ClientCreate,
    ClientDeleteResponse,
    ClientResponse,
    ClientUpdate,
)
from minicrm.backend.services.client import ClientService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[ClientResponse]],
    summary="List clients",
    description="List the caller's clients, most recently changed first.",
)
async def list_clients(
    db: DbSession,
    owner_id: OwnerId,
    search: str | None = Query(
        default=None,
        max_length=100,
        description="Match on name, phone, email or company",
    ),
) -> ApiResponse[list[ClientResponse]]:
    service = ClientService(db)
    clients = await service.list_clients(owner_id, search=search)
    return ApiResponse(data=[ClientResponse.model_validate(c) for c in clients])


@router.post(
    "",
    response_model=ApiResponse[ClientResponse],
    status_code=201,
    summary="Create a client",
)
async def create_client(
    data: ClientCreate,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ClientResponse]:
    service = ClientService(db)
    client = await service.create_client(owner_id, data)
    return ApiResponse(data=ClientResponse.model_validate(client))


@router.get(
    "/{client_id}",
    response_model=ApiResponse[ClientResponse],
    summary="Get a client",
)
async def get_client(
    client_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ClientResponse]:
    service = ClientService(db)
    client = await service.get_client(owner_id, client_id)
    return ApiResponse(data=ClientResponse.model_validate(client))


@router.api_route(
    "/{client_id}",
    methods=["PATCH", "PUT"],
    response_model=ApiResponse[ClientResponse],
    summary="Update a client",
    description="Update a client. Only provided fields are changed.",
)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ClientResponse]:
    service = ClientService(db)
    client = await service.update_client(owner_id, client_id, data)
    return ApiResponse(data=ClientResponse.model_validate(client))


@router.delete(
    "/{client_id}",
    response_model=ApiResponse[ClientDeleteResponse],
    summary="Delete a client",
    description="Delete a client together with its notes and reminders.",
)
async def delete_client(
    client_id: str,
    db: DbSession,
    owner_id: OwnerId,
) -> ApiResponse[ClientDeleteResponse]:
    service = ClientService(db)
    result = await service.delete_client(owner_id, client_id)
    return ApiResponse(
        data=ClientDeleteResponse(
            id=result.client_id,
            notes_deleted=result.notes_deleted,
            reminders_deleted=result.reminders_deleted,
        )
    )
