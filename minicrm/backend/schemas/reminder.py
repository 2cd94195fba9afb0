"""
Reminder Schemas.

Pydantic schemas for reminder API request/response validation.
Times travel as ``HH:MM``; ``HH:MM:SS`` is accepted on input.
"""

import datetime as dt
from typing import Annotated

from pydantic import BeforeValidator, Field, field_serializer

from minicrm.backend.models.reminder import Reminder
from minicrm.backend.schemas.base import CamelModel, OptionalRef, blank_to_none
from minicrm.backend.services.reminder import is_due, reminder_state

OptionalDate = Annotated[dt.date | None, BeforeValidator(blank_to_none)]
OptionalTime = Annotated[dt.time | None, BeforeValidator(blank_to_none)]


class ReminderCreate(CamelModel):
    """Schema for creating a reminder. Date and time default to today, 09:00."""

    client_id: OptionalRef = None
    text: str | None = Field(
        default=None,
        max_length=10000,
        examples=["Call back about the delivery"],
    )
    date: OptionalDate = Field(default=None, examples=["2026-03-14"])
    time: OptionalTime = Field(default=None, examples=["09:00"])


class ReminderUpdate(CamelModel):
    """
    Schema for a partial reminder update.

    ``notified`` and ``archived`` are applied as lifecycle transitions,
    not as raw column writes. A blank date or time leaves the
    current value in place.
    """

    client_id: OptionalRef = None
    text: str | None = Field(default=None, max_length=10000)
    date: OptionalDate = None
    time: OptionalTime = None
    notified: bool | None = None
    archived: bool | None = None


class ReminderResponse(CamelModel):
    """Schema for a reminder in API responses, with its computed state."""

    id: str
    owner_id: str
    client_id: str | None = None
    text: str
    date: dt.date
    time: dt.time
    notified: bool
    archived: bool
    archived_at: dt.datetime | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    due: bool = False
    state: str = "pending"

    @field_serializer("time")
    def serialize_time(self, value: dt.time) -> str:
        return value.strftime("%H:%M")

    @classmethod
    def from_reminder(cls, reminder: Reminder, now: dt.datetime) -> "ReminderResponse":
        """Build the response, evaluating due-state at ``now``."""
        response = cls.model_validate(reminder)
        response.due = is_due(reminder, now)
        response.state = reminder_state(reminder, now).value
        return response
