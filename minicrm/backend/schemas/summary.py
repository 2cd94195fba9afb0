"""
Summary Schemas.
"""

from minicrm.backend.schemas.base import CamelModel


class SummaryResponse(CamelModel):
    """Counts shown on the mini-app home screen."""

    clients: int
    notes: int
    reminders: int
    active_reminders: int
    due_reminders: int
