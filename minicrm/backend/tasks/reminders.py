"""
Reminder Notifications.

Turns due reminders into alerts. One dispatch pass, for one owner:

    list_due -> format message -> sink.alert -> mark_notified -> commit

Reminders are handled one at a time in due order. A reminder whose alert
or commit fails is rolled back, stays due, and is retried on the next
pass; the remaining reminders are still processed.

Three drivers share the pass:
    ReminderPoller          one owner, immediately and then every interval
    sweep_due_reminders     every owner with something due (scheduled task)
    in-process sweep        PeriodicTask around sweep_due_reminders (lifespan)
"""

import datetime as dt
import html
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from minicrm.backend.core.logging import get_logger, log_with_source
from minicrm.backend.models.reminder import Reminder
from minicrm.backend.services.reminder import Clock, ReminderService
from minicrm.backend.tasks.periodic import PeriodicTask

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class DueReminder:
    """Snapshot of a due reminder handed to an alert sink."""

    id: str
    owner_id: str
    client_id: str | None
    client_name: str | None
    text: str
    date: dt.date
    time: dt.time

    @classmethod
    def from_model(cls, reminder: Reminder, client_name: str | None = None) -> "DueReminder":
        return cls(
            id=reminder.id,
            owner_id=reminder.owner_id,
            client_id=reminder.client_id,
            client_name=client_name,
            text=reminder.text,
            date=reminder.date,
            time=reminder.time,
        )


@dataclass
class DispatchReport:
    """Outcome of one dispatch pass for one owner."""

    owner_id: str
    due: list[str] = field(default_factory=list)
    notified: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    # Set when the pass stopped before any reminder was handled
    error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.failed and self.error is None


def format_reminder_message(reminder: DueReminder | Reminder, client_name: str | None = None) -> str:
    """
    Render the alert text (Telegram HTML).

    Example:
        🔔 <b>Reminder</b>

        Call back about the delivery

        👤 Client: Ion Popescu
        📅 14.03.2026 09:00
    """
    if client_name is None:
        client_name = getattr(reminder, "client_name", None)

    parts = ["🔔 <b>Reminder</b>", "", html.escape(reminder.text), ""]
    if client_name:
        parts.append(f"👤 Client: {html.escape(client_name)}")
    parts.append(f"📅 {reminder.date:%d.%m.%Y} {reminder.time:%H:%M}")
    return "\n".join(parts)


class ReminderAlertSink(ABC):
    """
    Where alerts go.

    ``alert`` must raise if delivery failed, so the reminder is not marked
    notified. ``acknowledge`` is an optional follow-up signal after a
    delivered alert (a vibration, a sound); it runs only when
    ``supports_acknowledgement`` is true.
    """

    supports_acknowledgement: bool = False

    @abstractmethod
    async def alert(self, owner_id: str, reminder: DueReminder, message: str) -> None:
        ...

    async def acknowledge(self, owner_id: str) -> None:
        return None


class LoggingAlertSink(ReminderAlertSink):
    """Writes alerts to the log instead of delivering them."""

    async def alert(self, owner_id: str, reminder: DueReminder, message: str) -> None:
        log_with_source(
            logger, "poller", "info", "Reminder alert",
            owner_id=owner_id, reminder_id=reminder.id, message=message,
        )


async def _load_due(
    session: AsyncSession,
    owner_id: str,
    now: dt.datetime | None,
) -> list[DueReminder]:
    service = ReminderService(session)
    due = await service.list_due(owner_id, now)
    names = await service.client_names(owner_id, {r.client_id for r in due if r.client_id})
    return [DueReminder.from_model(r, names.get(r.client_id)) for r in due]


async def dispatch_due_reminders(
    session_factory: async_sessionmaker[AsyncSession],
    owner_id: str,
    sink: ReminderAlertSink,
    now: dt.datetime | None = None,
) -> DispatchReport:
    """
    Alert and mark notified every reminder due for ``owner_id``.

    Each reminder is committed on its own. A failure is logged, rolled back
    and recorded in the report; it does not stop the pass.

    Args:
        session_factory: Factory for the session used by this pass
        owner_id: Owner whose reminders are dispatched
        sink: Alert destination
        now: Evaluation time; the service clock when omitted

    Returns:
        Which reminders were due, notified and failed
    """
    report = DispatchReport(owner_id=owner_id)

    async with session_factory() as session:
        due = await _load_due(session, owner_id, now)
        report.due = [r.id for r in due]
        if not due:
            return report

        service = ReminderService(session)
        for reminder in due:
            message = format_reminder_message(reminder)
            try:
                await sink.alert(owner_id, reminder, message)
                await service.mark_notified(owner_id, reminder.id)
                await session.commit()
            except Exception as exc:
                await session.rollback()
                report.failed.append(reminder.id)
                log_with_source(
                    logger, "poller", "error", "Reminder dispatch failed",
                    owner_id=owner_id, reminder_id=reminder.id,
                    error_type=type(exc).__name__, error=str(exc),
                )
                continue

            report.notified.append(reminder.id)
            log_with_source(
                logger, "poller", "info", "Reminder notified",
                owner_id=owner_id, reminder_id=reminder.id,
            )

            if sink.supports_acknowledgement:
                try:
                    await sink.acknowledge(owner_id)
                except Exception as exc:
                    log_with_source(
                        logger, "poller", "warning", "Reminder acknowledgement failed",
                        owner_id=owner_id, error=str(exc),
                    )

    return report


async def sweep_due_reminders(
    session_factory: async_sessionmaker[AsyncSession],
    sink: ReminderAlertSink,
    now: dt.datetime | None = None,
) -> list[DispatchReport]:
    """
    Run a dispatch pass for every owner that has a due reminder.

    Owners are independent: a pass that fails outright (its due reminders
    could not be loaded) is logged and reported with ``error`` set, and
    the sweep moves on to the next owner.
    """
    async with session_factory() as session:
        service = ReminderService(session)
        now = now or service.now()
        owners = await service.owners_with_due(now)

    reports = []
    for owner_id in owners:
        try:
            report = await dispatch_due_reminders(session_factory, owner_id, sink, now)
        except Exception as exc:
            log_with_source(
                logger, "tasks", "error", "Reminder dispatch pass failed",
                owner_id=owner_id, error_type=type(exc).__name__, error=str(exc),
            )
            report = DispatchReport(owner_id=owner_id, error=str(exc))
        reports.append(report)

    if reports:
        log_with_source(
            logger, "tasks", "info", "Reminder sweep finished",
            owners=len(reports),
            notified=sum(len(r.notified) for r in reports),
            failed=sum(len(r.failed) for r in reports),
            owners_failed=sum(1 for r in reports if r.error is not None),
        )
    return reports


class ReminderPoller:
    """
    Polls one owner's due reminders: once on start, then every interval.

    The owner id is fixed for the poller's lifetime. ``stop()`` cancels the
    underlying task and waits for it.

    Usage:
        async with ReminderPoller(owner_id, sink, get_session_factory()):
            await shutdown_event.wait()
    """

    def __init__(
        self,
        owner_id: str,
        sink: ReminderAlertSink,
        session_factory: async_sessionmaker[AsyncSession],
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        self._owner_id = owner_id
        self._sink = sink
        self._session_factory = session_factory
        self._clock = clock
        self._periodic = PeriodicTask(
            f"reminder-poller:{owner_id}", interval_seconds, self.tick
        )
        self.last_report: DispatchReport | None = None

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def interval_seconds(self) -> float:
        return self._periodic.interval_seconds

    @property
    def running(self) -> bool:
        return self._periodic.running

    async def tick(self) -> DispatchReport:
        """One dispatch pass."""
        now = self._clock() if self._clock else None
        self.last_report = await dispatch_due_reminders(
            self._session_factory, self._owner_id, self._sink, now
        )
        return self.last_report

    def start(self) -> None:
        self._periodic.start()

    async def stop(self) -> None:
        await self._periodic.stop()

    async def __aenter__(self) -> "ReminderPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
