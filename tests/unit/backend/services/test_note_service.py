"""
Unit Tests for Note Service.

Tests NoteService against the in-memory SQLite session, plus the
repository interaction with a mocked session.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from minicrm.backend.core.exceptions import NotFoundError, ValidationError
from minicrm.backend.schemas.client import ClientCreate
from minicrm.backend.schemas.note import NoteCreate, NoteUpdate
from minicrm.backend.services.client import ClientService
from minicrm.backend.services.note import NoteService


@pytest.fixture
def service(db_session):
    return NoteService(db_session)


@pytest.fixture
async def client(db_session, owner_id):
    return await ClientService(db_session, phone_mask=False).create_client(
        owner_id, ClientCreate(name="Ion")
    )


class TestNoteServiceCreate:
    """Tests for note creation."""

    @pytest.mark.asyncio
    async def test_create_standalone_note(self, service, owner_id):
        note = await service.create_note(owner_id, NoteCreate(text="  Remember the invoice "))

        assert note.id
        assert note.text == "Remember the invoice"
        assert note.client_id is None
        assert note.owner_id == owner_id

    @pytest.mark.asyncio
    async def test_create_note_for_client(self, service, owner_id, client):
        note = await service.create_note(owner_id, NoteCreate(text="Met", client_id=client.id))

        assert note.client_id == client.id

    @pytest.mark.asyncio
    async def test_blank_client_id_means_standalone(self, service, owner_id):
        note = await service.create_note(owner_id, NoteCreate(text="x", client_id=""))

        assert note.client_id is None

    @pytest.mark.asyncio
    async def test_text_is_required(self, service, owner_id):
        with pytest.raises(ValidationError):
            await service.create_note(owner_id, NoteCreate(text="   "))

    @pytest.mark.asyncio
    async def test_client_of_other_owner_is_not_found(self, service, other_owner_id, client):
        with pytest.raises(NotFoundError):
            await service.create_note(other_owner_id, NoteCreate(text="x", client_id=client.id))

    @pytest.mark.asyncio
    async def test_repository_called_with_owner(self):
        """The owner is always passed through to the repository."""
        service = NoteService(AsyncMock())

        with patch.object(service.repo, "create", return_value=MagicMock(id="note-1")) as mock_create:
            await service.create_note("42", NoteCreate(text="Hello"))

        mock_create.assert_called_once_with("42", client_id=None, text="Hello")


class TestNoteServiceList:
    """Tests for listing notes."""

    @pytest.mark.asyncio
    async def test_filter_by_client(self, service, owner_id, client):
        attached = await service.create_note(owner_id, NoteCreate(text="a", client_id=client.id))
        await service.create_note(owner_id, NoteCreate(text="b"))

        result = await service.list_notes(owner_id, client_id=client.id)

        assert [n.id for n in result] == [attached.id]

    @pytest.mark.asyncio
    async def test_owner_isolation(self, service, owner_id, other_owner_id):
        await service.create_note(owner_id, NoteCreate(text="mine"))

        assert await service.list_notes(other_owner_id) == []


class TestNoteServiceUpdate:
    """Tests for updating notes."""

    @pytest.mark.asyncio
    async def test_update_text(self, service, owner_id):
        note = await service.create_note(owner_id, NoteCreate(text="old"))

        result = await service.update_note(owner_id, note.id, NoteUpdate(text="new"))

        assert result.text == "new"

    @pytest.mark.asyncio
    async def test_empty_update_returns_note(self, service, owner_id):
        note = await service.create_note(owner_id, NoteCreate(text="same"))

        result = await service.update_note(owner_id, note.id, NoteUpdate())

        assert result.text == "same"

    @pytest.mark.asyncio
    async def test_other_owner_gets_not_found(self, service, owner_id, other_owner_id):
        note = await service.create_note(owner_id, NoteCreate(text="mine"))

        with pytest.raises(NotFoundError):
            await service.update_note(other_owner_id, note.id, NoteUpdate(text="theirs"))


class TestNoteServiceDelete:
    """Tests for deleting notes."""

    @pytest.mark.asyncio
    async def test_delete(self, service, owner_id):
        note = await service.create_note(owner_id, NoteCreate(text="bye"))

        await service.delete_note(owner_id, note.id)

        with pytest.raises(NotFoundError):
            await service.get_note(owner_id, note.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, service, owner_id):
        with pytest.raises(NotFoundError):
            await service.delete_note(owner_id, "nonexistent")
