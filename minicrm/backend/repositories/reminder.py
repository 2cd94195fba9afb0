"""
Reminder Repository.

Data access layer for reminders. Due-state is not stored; the queries
here narrow candidates by date and the lifecycle service applies the
exact time comparison.
"""

import datetime as dt
from typing import Any

from sqlalchemy import select

from minicrm.backend.models.reminder import Reminder
from minicrm.backend.repositories.base import OwnedRepository

ACTIVE_ORDER = (Reminder.date.asc(), Reminder.time.asc(), Reminder.created_at.asc())


class ReminderRepository(OwnedRepository[Reminder]):
    """Repository for Reminder model."""

    model = Reminder
    default_order = ACTIVE_ORDER

    async def list_active(
        self,
        owner_id: str,
        client_id: str | None = None,
        on_date: dt.date | None = None,
    ) -> list[Reminder]:
        """Non-archived reminders, soonest first."""
        criteria: list[Any] = [Reminder.archived.is_(False)]
        if client_id is not None:
            criteria.append(Reminder.client_id == client_id)
        if on_date is not None:
            criteria.append(Reminder.date == on_date)
        return await self.list(owner_id, *criteria, order_by=ACTIVE_ORDER)

    async def list_archived(
        self,
        owner_id: str,
        client_id: str | None = None,
    ) -> list[Reminder]:
        """
        Archived reminders.

        Returned in storage order; the service sorts by archived_at with
        the created_at fallback.
        """
        criteria: list[Any] = [Reminder.archived.is_(True)]
        if client_id is not None:
            criteria.append(Reminder.client_id == client_id)
        return await self.list(owner_id, *criteria, order_by=())

    async def list_due_candidates(self, owner_id: str, today: dt.date) -> list[Reminder]:
        """Pending reminders dated today or earlier, soonest first."""
        return await self.list(
            owner_id,
            Reminder.notified.is_(False),
            Reminder.archived.is_(False),
            Reminder.date <= today,
            order_by=ACTIVE_ORDER,
        )

    async def due_candidate_slots(self, today: dt.date) -> list[tuple[str, dt.date, dt.time]]:
        """
        (owner_id, date, time) of every pending reminder dated today or earlier.

        Spans all owners; used only by the background sweep to find whom
        to dispatch for.
        """
        result = await self.session.execute(
            select(Reminder.owner_id, Reminder.date, Reminder.time)
            .where(Reminder.notified.is_(False))
            .where(Reminder.archived.is_(False))
            .where(Reminder.date <= today)
            .order_by(Reminder.owner_id)
        )
        return [tuple(row) for row in result.all()]

    async def delete_for_client(self, owner_id: str, client_id: str) -> int:
        """Delete every reminder attached to one client. Returns the count."""
        return await self.delete_where(owner_id, Reminder.client_id == client_id)
