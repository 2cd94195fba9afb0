"""
Unit Tests for Client Service.

Client CRUD, search, phone normalization and the cascading delete,
against the in-memory SQLite session.
"""

import datetime as dt
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from minicrm.backend.core.exceptions import DatabaseError, NotFoundError, ValidationError
from minicrm.backend.schemas.client import ClientCreate, ClientUpdate
from minicrm.backend.schemas.note import NoteCreate
from minicrm.backend.schemas.reminder import ReminderCreate
from minicrm.backend.services.client import ClientService
from minicrm.backend.services.note import NoteService
from minicrm.backend.services.reminder import ReminderService


@pytest.fixture
def service(db_session):
    return ClientService(db_session, phone_mask=True)


class TestCreateClient:
    """Tests for client creation."""

    @pytest.mark.asyncio
    async def test_create_with_all_fields(self, service, owner_id):
        client = await service.create_client(
            owner_id,
            ClientCreate(
                name="  Ion Popescu ",
                phone="069123456",
                email="ion@example.com",
                company="Acme",
                notes="Prefers calls",
            ),
        )

        assert client.id
        assert client.owner_id == owner_id
        assert client.name == "Ion Popescu"
        assert client.phone == "+373 (691) 23-456"
        assert client.company == "Acme"

    @pytest.mark.asyncio
    async def test_blank_optional_fields_are_stored_as_none(self, service, owner_id):
        client = await service.create_client(
            owner_id, ClientCreate(name="Ion", phone="  ", email="")
        )

        assert client.phone is None
        assert client.email is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", "   "])
    async def test_name_is_required(self, service, owner_id, name):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_client(owner_id, ClientCreate(name=name))

        assert exc_info.value.details == {"missing_fields": ["name"]}

    @pytest.mark.asyncio
    async def test_phone_without_digits_is_kept(self, service, owner_id):
        client = await service.create_client(owner_id, ClientCreate(name="Ion", phone="ask office"))

        assert client.phone == "ask office"

    @pytest.mark.asyncio
    async def test_phone_mask_disabled(self, db_session, owner_id):
        service = ClientService(db_session, phone_mask=False)

        client = await service.create_client(owner_id, ClientCreate(name="Ion", phone="069123456"))

        assert client.phone == "069123456"


class TestListClients:
    """Tests for listing and search."""

    @pytest.mark.asyncio
    async def test_most_recently_updated_first(self, service, owner_id):
        older = await service.create_client(owner_id, ClientCreate(name="Older"))
        newer = await service.create_client(owner_id, ClientCreate(name="Newer"))
        await service.clients.update(owner_id, older.id, updated_at=dt.datetime(2026, 1, 1))
        await service.clients.update(owner_id, newer.id, updated_at=dt.datetime(2026, 2, 1))

        result = await service.list_clients(owner_id)

        assert [c.id for c in result] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_search_matches_any_field_case_insensitively(self, service, owner_id):
        by_name = await service.create_client(owner_id, ClientCreate(name="Maria Ionescu"))
        by_company = await service.create_client(owner_id, ClientCreate(name="X", company="MARIA SRL"))
        await service.create_client(owner_id, ClientCreate(name="Vasile"))

        result = await service.list_clients(owner_id, search="maria")

        assert {c.id for c in result} == {by_name.id, by_company.id}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["_", "%", "\\"])
    async def test_wildcard_characters_match_literally(self, service, owner_id, query):
        await service.create_client(owner_id, ClientCreate(name="Ion Popescu"))

        assert await service.list_clients(owner_id, search=query) == []

    @pytest.mark.asyncio
    async def test_search_finds_literal_percent_and_underscore(self, service, owner_id):
        discount = await service.create_client(
            owner_id, ClientCreate(name="Ana", company="50% Off SRL")
        )
        handle = await service.create_client(
            owner_id, ClientCreate(name="Vasile", email="vasile_d@example.md")
        )
        await service.create_client(owner_id, ClientCreate(name="Maria", company="500 Off"))

        assert [c.id for c in await service.list_clients(owner_id, search="50%")] == [discount.id]
        assert [c.id for c in await service.list_clients(owner_id, search="e_d")] == [handle.id]

    @pytest.mark.asyncio
    async def test_blank_search_lists_everything(self, service, owner_id):
        await service.create_client(owner_id, ClientCreate(name="A"))
        await service.create_client(owner_id, ClientCreate(name="B"))

        assert len(await service.list_clients(owner_id, search="   ")) == 2

    @pytest.mark.asyncio
    async def test_owner_isolation(self, service, owner_id, other_owner_id):
        await service.create_client(other_owner_id, ClientCreate(name="Theirs"))

        assert await service.list_clients(owner_id) == []
        assert await service.list_clients(owner_id, search="Theirs") == []


class TestUpdateClient:
    """Tests for partial updates."""

    @pytest.mark.asyncio
    async def test_only_sent_fields_change(self, service, owner_id):
        client = await service.create_client(
            owner_id, ClientCreate(name="Ion", company="Acme", email="ion@example.com")
        )

        result = await service.update_client(owner_id, client.id, ClientUpdate(company="Globex"))

        assert result.company == "Globex"
        assert result.email == "ion@example.com"
        assert result.name == "Ion"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, service, owner_id):
        client = await service.create_client(owner_id, ClientCreate(name="Ion"))

        with pytest.raises(ValidationError):
            await service.update_client(owner_id, client.id, ClientUpdate(name=" "))

    @pytest.mark.asyncio
    async def test_other_owner_cannot_update(self, service, owner_id, other_owner_id):
        client = await service.create_client(owner_id, ClientCreate(name="Ion"))

        with pytest.raises(NotFoundError):
            await service.update_client(other_owner_id, client.id, ClientUpdate(name="Hijack"))

        assert (await service.get_client(owner_id, client.id)).name == "Ion"


class TestDeleteClient:
    """Tests for the cascading delete."""

    @pytest.fixture
    async def populated(self, db_session, service, owner_id, clock):
        client = await service.create_client(owner_id, ClientCreate(name="Ion"))
        other = await service.create_client(owner_id, ClientCreate(name="Keep"))
        notes = NoteService(db_session)
        reminders = ReminderService(db_session, clock=clock, default_time=dt.time(9, 0))

        for text in ("a", "b"):
            await notes.create_note(owner_id, NoteCreate(text=text, client_id=client.id))
        await notes.create_note(owner_id, NoteCreate(text="kept", client_id=other.id))
        await notes.create_note(owner_id, NoteCreate(text="standalone"))
        for text in ("x", "y", "z"):
            await reminders.create_reminder(owner_id, ReminderCreate(text=text, client_id=client.id))
        await reminders.create_reminder(owner_id, ReminderCreate(text="kept", client_id=other.id))

        return client, other, notes, reminders

    @pytest.mark.asyncio
    async def test_removes_client_notes_and_reminders(self, service, owner_id, populated):
        client, other, notes, reminders = populated

        result = await service.delete_client(owner_id, client.id)

        assert result.client_id == client.id
        assert result.notes_deleted == 2
        assert result.reminders_deleted == 3
        with pytest.raises(NotFoundError):
            await service.get_client(owner_id, client.id)
        assert await notes.list_notes(owner_id, client_id=client.id) == []
        assert await reminders.list_reminders(owner_id, client_id=client.id) == []

    @pytest.mark.asyncio
    async def test_leaves_other_records(self, service, owner_id, populated):
        client, other, notes, reminders = populated

        await service.delete_client(owner_id, client.id)

        assert {n.text for n in await notes.list_notes(owner_id)} == {"kept", "standalone"}
        assert [r.text for r in await reminders.list_reminders(owner_id)] == ["kept"]
        assert (await service.get_client(owner_id, other.id)).name == "Keep"

    @pytest.mark.asyncio
    async def test_other_owner_gets_not_found_and_nothing_is_removed(
        self, service, owner_id, other_owner_id, populated
    ):
        client, other, notes, reminders = populated

        with pytest.raises(NotFoundError):
            await service.delete_client(other_owner_id, client.id)

        assert len(await notes.list_notes(owner_id, client_id=client.id)) == 2

    @pytest.mark.asyncio
    async def test_failed_stage_is_named(self, service, owner_id, populated):
        client = populated[0]

        with patch.object(
            service.reminders,
            "delete_for_client",
            side_effect=OperationalError("DELETE", {}, Exception("database is locked")),
        ):
            with pytest.raises(DatabaseError) as exc_info:
                await service.delete_client(owner_id, client.id)

        assert "delete_client_reminders" in exc_info.value.message
