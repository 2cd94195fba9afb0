"""
Client Schemas.

Pydantic schemas for client API request/response validation.
Required-field checks (a non-blank name) happen in ClientService so that
a blank name is reported as a validation error, not a malformed request.
"""

from datetime import datetime

from pydantic import Field

from minicrm.backend.schemas.base import CamelModel


class ClientCreate(CamelModel):
    """Schema for creating a client."""

    name: str | None = Field(
        default=None,
        max_length=255,
        description="Client name",
        examples=["Ion Popescu"],
    )
    phone: str | None = Field(default=None, max_length=64, examples=["+373 (691) 23-456"])
    email: str | None = Field(default=None, max_length=255)
    company: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=10000)


class ClientUpdate(CamelModel):
    """Schema for a partial client update. Only sent fields change."""

    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=255)
    company: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=10000)


class ClientResponse(CamelModel):
    """Schema for a client in API responses."""

    id: str
    owner_id: str
    name: str
    phone: str | None = None
    email: str | None = None
    company: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class ClientDeleteResponse(CamelModel):
    """Outcome of a cascading client delete."""

    id: str
    notes_deleted: int
    reminders_deleted: int
