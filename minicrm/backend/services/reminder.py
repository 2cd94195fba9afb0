"""
Reminder Service.

The reminder lifecycle. Due-state is derived, never stored:

    PENDING --(clock passes date+time)--> DUE --mark_notified--> NOTIFIED_ARCHIVED
    PENDING/DUE --archive_reminder--> ARCHIVED
    ARCHIVED/NOTIFIED_ARCHIVED --unarchive_reminder--> PENDING or DUE

``notified`` and ``archived`` only change through these transitions, so a
reminder is never stored as notified but still active. Reminder dates and
times are wall-clock values; "now" comes from an injectable clock that
defaults to the current time in the application timezone.
"""

import datetime as dt
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.core.exceptions import NotFoundError, ValidationError
from minicrm.backend.core.utils import local_now, utc_now
from minicrm.backend.models.reminder import Reminder
from minicrm.backend.repositories.client import ClientRepository
from minicrm.backend.repositories.note import NoteRepository
from minicrm.backend.repositories.reminder import ReminderRepository
from minicrm.backend.services.base import BaseService

if TYPE_CHECKING:
    from minicrm.backend.schemas.reminder import ReminderCreate, ReminderUpdate

Clock = Callable[[], dt.datetime]


class ReminderState(str, Enum):
    PENDING = "pending"
    DUE = "due"
    NOTIFIED_ARCHIVED = "notified_archived"
    ARCHIVED = "archived"


def combine(date: dt.date, time: dt.time) -> dt.datetime:
    """The naive local moment a reminder falls due."""
    return dt.datetime.combine(date, time.replace(tzinfo=None))


def is_due(reminder: Reminder, now: dt.datetime) -> bool:
    """A reminder is due from its date and time onwards until it is notified or archived."""
    if reminder.notified or reminder.archived:
        return False
    return combine(reminder.date, reminder.time) <= now


def reminder_state(reminder: Reminder, now: dt.datetime) -> ReminderState:
    """Derive the lifecycle state at ``now``."""
    if reminder.notified:
        return ReminderState.NOTIFIED_ARCHIVED
    if reminder.archived:
        return ReminderState.ARCHIVED
    if is_due(reminder, now):
        return ReminderState.DUE
    return ReminderState.PENDING


def parse_time(value: str) -> dt.time:
    """Parse ``HH:MM`` or ``HH:MM:SS``."""
    try:
        return dt.time.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(
            "Invalid time",
            details={"time": f"Expected HH:MM, got {value!r}"},
        ) from e


def _archive_sort_key(reminder: Reminder) -> dt.datetime:
    return reminder.archived_at or reminder.created_at


class ReminderService(BaseService):
    """
    Service for the reminder lifecycle.

    Every method takes the owner id explicitly; reminders of other owners
    are reported as not found.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        default_time: dt.time | None = None,
    ) -> None:
        super().__init__(session)
        self.reminders = ReminderRepository(session)
        self.clients = ClientRepository(session)
        self.notes = NoteRepository(session)
        self._clock = clock or local_now
        self._default_time = default_time

    def now(self) -> dt.datetime:
        """Current wall-clock time from the service clock."""
        return self._clock()

    @property
    def default_time(self) -> dt.time:
        if self._default_time is None:
            from minicrm.backend.core.config import get_app_config

            self._default_time = parse_time(get_app_config().reminders.default_time)
        return self._default_time

    async def client_names(self, owner_id: str, client_ids: set[str]) -> dict[str, str]:
        """Names of the owner's clients among ``client_ids``, by id."""
        return await self._execute_db_operation(
            "client_names", self.clients.names_by_id(owner_id, client_ids)
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_reminder(self, owner_id: str, reminder_id: str) -> Reminder:
        """
        Raises:
            NotFoundError: If the owner has no such reminder
        """
        reminder = await self._execute_db_operation(
            "get_reminder", self.reminders.get(owner_id, reminder_id)
        )
        return self._found(reminder, "Reminder")

    async def list_active(
        self,
        owner_id: str,
        client_id: str | None = None,
        on_date: dt.date | None = None,
    ) -> list[Reminder]:
        """Non-archived reminders ordered by (date, time), soonest first."""
        return await self._execute_db_operation(
            "list_active_reminders",
            self.reminders.list_active(owner_id, client_id=client_id, on_date=on_date),
        )

    async def list_archived(
        self,
        owner_id: str,
        client_id: str | None = None,
    ) -> list[Reminder]:
        """Archived reminders, most recently archived first."""
        reminders = await self._execute_db_operation(
            "list_archived_reminders",
            self.reminders.list_archived(owner_id, client_id=client_id),
        )
        return sorted(reminders, key=_archive_sort_key, reverse=True)

    async def list_reminders(
        self,
        owner_id: str,
        client_id: str | None = None,
        archived: bool | None = None,
        on_date: dt.date | None = None,
    ) -> list[Reminder]:
        """
        List reminders by archive status.

        Args:
            owner_id: Owner of the reminders
            client_id: Restrict to one client
            archived: True for the archive, False for active, None for both
                (active first)
            on_date: Restrict active reminders to one calendar date
        """
        if archived is False:
            return await self.list_active(owner_id, client_id, on_date)
        archived_reminders = await self.list_archived(owner_id, client_id)
        if on_date is not None:
            archived_reminders = [r for r in archived_reminders if r.date == on_date]
        if archived is True:
            return archived_reminders
        active = await self.list_active(owner_id, client_id, on_date)
        return active + archived_reminders

    async def list_due(self, owner_id: str, now: dt.datetime | None = None) -> list[Reminder]:
        """Active reminders that are due at ``now``, soonest first."""
        now = now or self.now()
        candidates = await self._execute_db_operation(
            "list_due_reminders",
            self.reminders.list_due_candidates(owner_id, now.date()),
        )
        return [reminder for reminder in candidates if is_due(reminder, now)]

    async def owners_with_due(self, now: dt.datetime | None = None) -> list[str]:
        """Owners with at least one due reminder."""
        now = now or self.now()
        slots = await self._execute_db_operation(
            "owners_with_due",
            self.reminders.due_candidate_slots(now.date()),
        )
        owners = {owner_id for owner_id, date, time in slots if combine(date, time) <= now}
        return sorted(owners)

    async def count_summary(self, owner_id: str, now: dt.datetime | None = None) -> dict[str, int]:
        """Counts for the home screen."""
        clients = await self._execute_db_operation("count_clients", self.clients.count(owner_id))
        notes = await self._execute_db_operation("count_notes", self.notes.count(owner_id))
        total = await self._execute_db_operation("count_reminders", self.reminders.count(owner_id))
        active = await self._execute_db_operation(
            "count_active_reminders",
            self.reminders.count(owner_id, Reminder.archived.is_(False)),
        )
        due = await self.list_due(owner_id, now)
        return {
            "clients": clients,
            "notes": notes,
            "reminders": total,
            "active_reminders": active,
            "due_reminders": len(due),
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_reminder(self, owner_id: str, data: "ReminderCreate") -> Reminder:
        """
        Create a reminder. Date defaults to today, time to the configured default.

        Raises:
            ValidationError: If text is blank
            NotFoundError: If client_id names no client of this owner
        """
        self._validate_required({"text": data.text}, ["text"])
        await self._check_client(owner_id, data.client_id)

        date = data.date or self.now().date()
        time = data.time or self.default_time

        reminder = await self._execute_db_operation(
            "create_reminder",
            self.reminders.create(
                owner_id,
                client_id=data.client_id,
                text=data.text.strip(),
                date=date,
                time=time.replace(tzinfo=None),
                notified=False,
                archived=False,
            ),
        )
        self._log_operation("Reminder created", reminder_id=reminder.id, date=str(date))
        return reminder

    async def update_reminder(
        self,
        owner_id: str,
        reminder_id: str,
        data: "ReminderUpdate",
    ) -> Reminder:
        """
        Apply a partial update.

        Plain fields (text, date, time, client) are written first. Flags are
        then applied as transitions: ``archived=false`` unarchives,
        ``notified=true`` marks notified, ``archived=true`` archives.
        ``notified=false`` without ``archived=false`` changes nothing.

        Raises:
            NotFoundError: If the reminder or the referenced client is not the owner's
            ValidationError: If text is sent blank
        """
        patch = data.model_dump(exclude_unset=True)
        reminder = await self.get_reminder(owner_id, reminder_id)

        fields: dict[str, Any] = {}
        if "text" in patch:
            self._validate_required(patch, ["text"])
            fields["text"] = patch["text"].strip()
        if patch.get("date") is not None:
            fields["date"] = patch["date"]
        if patch.get("time") is not None:
            fields["time"] = patch["time"].replace(tzinfo=None)
        if "client_id" in patch:
            await self._check_client(owner_id, patch["client_id"])
            fields["client_id"] = patch["client_id"]

        if fields:
            self._log_operation(
                "Updating reminder", reminder_id=reminder_id, fields=list(fields)
            )
            reminder = await self._execute_db_operation(
                "update_reminder",
                self.reminders.update(owner_id, reminder_id, **fields),
            )

        if patch.get("archived") is False:
            reminder = await self.unarchive_reminder(owner_id, reminder_id)
        if patch.get("notified") is True:
            reminder = await self.mark_notified(owner_id, reminder_id)
        elif patch.get("archived") is True:
            reminder = await self.archive_reminder(owner_id, reminder_id)

        return reminder

    async def mark_notified(self, owner_id: str, reminder_id: str) -> Reminder:
        """
        Terminal transition after a successful alert: notified and archived.

        Idempotent; an already notified reminder is returned unchanged.

        Raises:
            NotFoundError: If the owner has no such reminder
        """
        reminder = await self.get_reminder(owner_id, reminder_id)
        if reminder.notified and reminder.archived:
            return reminder

        self._log_operation("Marking reminder notified", reminder_id=reminder_id)
        return await self._execute_db_operation(
            "mark_notified",
            self.reminders.update(
                owner_id,
                reminder_id,
                notified=True,
                archived=True,
                archived_at=reminder.archived_at or utc_now(),
            ),
        )

    async def archive_reminder(self, owner_id: str, reminder_id: str) -> Reminder:
        """Archive without notifying. Idempotent."""
        reminder = await self.get_reminder(owner_id, reminder_id)
        if reminder.archived:
            return reminder

        self._log_operation("Archiving reminder", reminder_id=reminder_id)
        return await self._execute_db_operation(
            "archive_reminder",
            self.reminders.update(owner_id, reminder_id, archived=True, archived_at=utc_now()),
        )

    async def unarchive_reminder(self, owner_id: str, reminder_id: str) -> Reminder:
        """Return a reminder to the active list, clearing its notified flag."""
        reminder = await self.get_reminder(owner_id, reminder_id)
        if not reminder.archived and not reminder.notified:
            return reminder

        self._log_operation("Unarchiving reminder", reminder_id=reminder_id)
        return await self._execute_db_operation(
            "unarchive_reminder",
            self.reminders.update(
                owner_id, reminder_id, archived=False, notified=False, archived_at=None
            ),
        )

    async def delete_reminder(self, owner_id: str, reminder_id: str) -> None:
        """
        Raises:
            NotFoundError: If the owner has no such reminder
        """
        self._log_operation("Deleting reminder", reminder_id=reminder_id)
        deleted = await self._execute_db_operation(
            "delete_reminder", self.reminders.delete(owner_id, reminder_id)
        )
        if not deleted:
            raise NotFoundError("Reminder not found")
