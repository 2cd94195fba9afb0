"""
Unit tests for reminder dispatch and the reminder poller.

Dispatch runs against the in-memory SQLite database through a session
factory, with a recording alert sink in place of Telegram.
"""

import asyncio
import datetime as dt
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from minicrm.backend.core.exceptions import DatabaseError
from minicrm.backend.repositories.client import ClientRepository
from minicrm.backend.schemas.client import ClientCreate
from minicrm.backend.schemas.reminder import ReminderCreate
from minicrm.backend.services.client import ClientService
from minicrm.backend.services.reminder import ReminderService
from minicrm.backend.tasks.reminders import (
    DueReminder,
    LoggingAlertSink,
    ReminderPoller,
    dispatch_due_reminders,
    format_reminder_message,
    sweep_due_reminders,
)

TODAY = dt.date(2026, 3, 14)


@pytest.fixture
def seed(db_session_factory, clock):
    """Create reminders in a committed session; returns their ids."""
    async def _seed(owner_id, *items, client_name=None):
        async with db_session_factory() as session:
            client_id = None
            if client_name:
                client = await ClientService(session, phone_mask=False).create_client(
                    owner_id, ClientCreate(name=client_name)
                )
                client_id = client.id
            service = ReminderService(session, clock=clock)
            ids = []
            for text, time in items:
                reminder = await service.create_reminder(
                    owner_id,
                    ReminderCreate(text=text, date=TODAY, time=time, client_id=client_id),
                )
                ids.append(reminder.id)
            await session.commit()
        return ids
    return _seed


async def load(db_session_factory, owner_id, reminder_id):
    async with db_session_factory() as session:
        return await ReminderService(session).get_reminder(owner_id, reminder_id)


class TestFormatReminderMessage:
    def test_with_client(self):
        reminder = DueReminder(
            id="r1",
            owner_id="1",
            client_id="c1",
            client_name="Ion <Popescu>",
            text="Call & confirm",
            date=TODAY,
            time=dt.time(9, 5),
        )

        message = format_reminder_message(reminder)

        assert message.startswith("🔔 <b>Reminder</b>")
        assert "Call &amp; confirm" in message
        assert "👤 Client: Ion &lt;Popescu&gt;" in message
        assert message.endswith("📅 14.03.2026 09:05")

    def test_without_client(self):
        reminder = DueReminder(
            id="r1", owner_id="1", client_id=None, client_name=None,
            text="Standalone", date=TODAY, time=dt.time(18, 0),
        )

        assert "Client" not in format_reminder_message(reminder)


class TestDispatchDueReminders:
    """Tests for a single dispatch pass."""

    @pytest.mark.asyncio
    async def test_alerts_and_marks_due_reminders(
        self, db_session_factory, owner_id, seed, recording_sink, fixed_now
    ):
        due_id, later_id = await seed(
            owner_id, ("due", dt.time(11, 0)), ("later", dt.time(13, 0)), client_name="Ion"
        )

        report = await dispatch_due_reminders(db_session_factory, owner_id, recording_sink, fixed_now)

        assert report.due == [due_id]
        assert report.notified == [due_id]
        assert report.ok
        (alert_owner, alerted, message), = recording_sink.alerts
        assert alert_owner == owner_id
        assert alerted.client_name == "Ion"
        assert "👤 Client: Ion" in message

        reminder = await load(db_session_factory, owner_id, due_id)
        assert reminder.notified and reminder.archived
        assert not (await load(db_session_factory, owner_id, later_id)).notified

    @pytest.mark.asyncio
    async def test_second_pass_sends_nothing(
        self, db_session_factory, owner_id, seed, recording_sink, fixed_now
    ):
        await seed(owner_id, ("due", dt.time(11, 0)))

        await dispatch_due_reminders(db_session_factory, owner_id, recording_sink, fixed_now)
        report = await dispatch_due_reminders(db_session_factory, owner_id, recording_sink, fixed_now)

        assert report.due == []
        assert len(recording_sink.alerts) == 1

    @pytest.mark.asyncio
    async def test_failed_alert_does_not_block_the_rest(
        self, db_session_factory, owner_id, seed, sink_factory, fixed_now
    ):
        first, second, third = await seed(
            owner_id, ("a", dt.time(9, 0)), ("b", dt.time(10, 0)), ("c", dt.time(11, 0))
        )
        sink = sink_factory(fail_ids={second})

        report = await dispatch_due_reminders(db_session_factory, owner_id, sink, fixed_now)

        assert report.notified == [first, third]
        assert report.failed == [second]
        assert not report.ok
        failed = await load(db_session_factory, owner_id, second)
        assert not failed.notified and not failed.archived

    @pytest.mark.asyncio
    async def test_failed_reminder_is_retried_next_pass(
        self, db_session_factory, owner_id, seed, sink_factory, fixed_now
    ):
        reminder_id, = await seed(owner_id, ("a", dt.time(9, 0)))
        sink = sink_factory(fail_ids={reminder_id})
        await dispatch_due_reminders(db_session_factory, owner_id, sink, fixed_now)

        sink.fail_ids.clear()
        report = await dispatch_due_reminders(db_session_factory, owner_id, sink, fixed_now)

        assert report.notified == [reminder_id]

    @pytest.mark.asyncio
    async def test_only_owners_reminders(
        self, db_session_factory, owner_id, other_owner_id, seed, recording_sink, fixed_now
    ):
        await seed(other_owner_id, ("theirs", dt.time(9, 0)))

        report = await dispatch_due_reminders(db_session_factory, owner_id, recording_sink, fixed_now)

        assert report.due == []
        assert recording_sink.alerts == []

    @pytest.mark.asyncio
    async def test_acknowledge_after_each_delivery(
        self, db_session_factory, owner_id, seed, sink_factory, fixed_now
    ):
        await seed(owner_id, ("a", dt.time(9, 0)), ("b", dt.time(10, 0)))
        sink = sink_factory(acknowledge=True)

        await dispatch_due_reminders(db_session_factory, owner_id, sink, fixed_now)

        assert sink.acknowledged == [owner_id, owner_id]

    @pytest.mark.asyncio
    async def test_logging_sink_marks_notified(
        self, db_session_factory, owner_id, seed, fixed_now
    ):
        reminder_id, = await seed(owner_id, ("a", dt.time(9, 0)))

        report = await dispatch_due_reminders(
            db_session_factory, owner_id, LoggingAlertSink(), fixed_now
        )

        assert report.notified == [reminder_id]


class TestSweepDueReminders:
    @pytest.mark.asyncio
    async def test_dispatches_every_owner_with_due_reminders(
        self, db_session_factory, owner_id, other_owner_id, seed, recording_sink, fixed_now
    ):
        await seed(owner_id, ("mine", dt.time(9, 0)))
        await seed(other_owner_id, ("theirs", dt.time(10, 0)), ("later", dt.time(18, 0)))

        reports = await sweep_due_reminders(db_session_factory, recording_sink, fixed_now)

        assert sorted(r.owner_id for r in reports) == sorted([owner_id, other_owner_id])
        assert sum(len(r.notified) for r in reports) == 2
        assert {alert[0] for alert in recording_sink.alerts} == {owner_id, other_owner_id}

    @pytest.mark.asyncio
    async def test_owner_whose_pass_fails_does_not_block_the_rest(
        self, db_session_factory, owner_id, other_owner_id, seed, recording_sink, fixed_now
    ):
        await seed(owner_id, ("mine", dt.time(9, 0)), client_name="Ion")
        theirs, = await seed(other_owner_id, ("theirs", dt.time(10, 0)), client_name="Ana")
        names_by_id = ClientRepository.names_by_id

        async def names_failing_for_first_owner(self, owner, ids):
            if owner == owner_id:
                raise OperationalError("SELECT", {}, Exception("connection reset"))
            return await names_by_id(self, owner, ids)

        with patch.object(ClientRepository, "names_by_id", names_failing_for_first_owner):
            reports = await sweep_due_reminders(db_session_factory, recording_sink, fixed_now)

        by_owner = {r.owner_id: r for r in reports}
        assert not by_owner[owner_id].ok
        assert "client_names" in by_owner[owner_id].error
        assert by_owner[other_owner_id].notified == [theirs]
        assert by_owner[other_owner_id].ok
        assert [alert[0] for alert in recording_sink.alerts] == [other_owner_id]

        again = await sweep_due_reminders(db_session_factory, recording_sink, fixed_now)
        assert [r.owner_id for r in again] == [owner_id]
        assert again[0].ok


class TestLoadFailures:
    @pytest.mark.asyncio
    async def test_client_name_lookup_failure_is_a_database_error(
        self, db_session_factory, owner_id, seed, recording_sink, fixed_now
    ):
        await seed(owner_id, ("due", dt.time(9, 0)), client_name="Ion")

        with patch.object(
            ClientRepository,
            "names_by_id",
            AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone"))),
        ):
            with pytest.raises(DatabaseError, match="client_names"):
                await dispatch_due_reminders(db_session_factory, owner_id, recording_sink, fixed_now)

        assert recording_sink.alerts == []


class TestReminderPoller:
    """Tests for the per-owner poller."""

    @pytest.mark.asyncio
    async def test_first_tick_runs_immediately(
        self, db_session_factory, owner_id, seed, recording_sink, clock
    ):
        reminder_id, = await seed(owner_id, ("due", dt.time(9, 0)))
        poller = ReminderPoller(
            owner_id, recording_sink, db_session_factory, interval_seconds=60, clock=clock
        )

        async with poller:
            for _ in range(100):
                if poller.last_report is not None:
                    break
                await asyncio.sleep(0.01)

        assert poller.last_report.notified == [reminder_id]
        assert not poller.running

    @pytest.mark.asyncio
    async def test_tick_uses_injected_clock(
        self, db_session_factory, owner_id, seed, recording_sink
    ):
        await seed(owner_id, ("due at nine", dt.time(9, 0)))
        now = {"value": dt.datetime(2026, 3, 14, 8, 0)}
        poller = ReminderPoller(
            owner_id, recording_sink, db_session_factory, clock=lambda: now["value"]
        )

        assert (await poller.tick()).due == []

        now["value"] = dt.datetime(2026, 3, 14, 9, 0)
        assert len((await poller.tick()).notified) == 1

    def test_owner_and_interval_are_exposed(self, db_session_factory, recording_sink):
        poller = ReminderPoller("42", recording_sink, db_session_factory, interval_seconds=5)

        assert poller.owner_id == "42"
        assert poller.interval_seconds == 5.0
        assert not poller.running

    def test_rejects_non_positive_interval(self, db_session_factory, recording_sink):
        with pytest.raises(ValueError):
            ReminderPoller("42", recording_sink, db_session_factory, interval_seconds=0)
