"""
Note Schemas.

Pydantic schemas for note API request/response validation.
"""

from datetime import datetime

from pydantic import Field

from minicrm.backend.schemas.base import CamelModel, OptionalRef


class NoteCreate(CamelModel):
    """Schema for creating a note."""

    client_id: OptionalRef = Field(default=None, description="Attached client, if any")
    text: str | None = Field(
        default=None,
        max_length=10000,
        description="Note text",
        examples=["Called, wants a quote by Friday"],
    )


class NoteUpdate(CamelModel):
    """Schema for updating a note. ``clientId: null`` detaches it."""

    client_id: OptionalRef = None
    text: str | None = Field(default=None, max_length=10000)


class NoteResponse(CamelModel):
    """Schema for a note in API responses."""

    id: str
    owner_id: str
    client_id: str | None = None
    text: str
    created_at: datetime
    updated_at: datetime
