"""
Note Service.

Business logic layer for notes. Orchestrates repositories,
handles validation, and implements business rules.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.core.exceptions import NotFoundError
from minicrm.backend.models.note import Note
from minicrm.backend.repositories.note import NoteRepository
from minicrm.backend.schemas.note import NoteCreate, NoteUpdate
from minicrm.backend.services.base import BaseService


class NoteService(BaseService):
    """
    Service for note business logic.

    Notes are newest first. A note may be attached to one of the owner's
    clients or stand alone.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)

    async def create_note(self, owner_id: str, data: NoteCreate) -> Note:
        """
        Create a new note.

        Raises:
            ValidationError: If text is blank
            NotFoundError: If client_id names no client of this owner
        """
        self._validate_required({"text": data.text}, ["text"])
        await self._check_client(owner_id, data.client_id)

        note = await self._execute_db_operation(
            "create_note",
            self.repo.create(owner_id, client_id=data.client_id, text=data.text.strip()),
        )

        self._log_debug("Note created", note_id=note.id)
        return note

    async def get_note(self, owner_id: str, note_id: str) -> Note:
        """
        Get a note by ID.

        Raises:
            NotFoundError: If the owner has no such note
        """
        note = await self._execute_db_operation("get_note", self.repo.get(owner_id, note_id))
        return self._found(note, "Note")

    async def list_notes(self, owner_id: str, client_id: str | None = None) -> list[Note]:
        """List the owner's notes, optionally for one client, newest first."""
        if client_id is not None:
            return await self._execute_db_operation(
                "list_client_notes", self.repo.list_for_client(owner_id, client_id)
            )
        return await self._execute_db_operation("list_notes", self.repo.list(owner_id))

    async def update_note(self, owner_id: str, note_id: str, data: NoteUpdate) -> Note:
        """
        Update an existing note.

        Raises:
            NotFoundError: If the note or the referenced client is not the owner's
            ValidationError: If text is sent blank
        """
        update_data = data.model_dump(exclude_unset=True)

        if not update_data:
            return await self.get_note(owner_id, note_id)

        if "text" in update_data:
            self._validate_required(update_data, ["text"])
            update_data["text"] = update_data["text"].strip()
        if "client_id" in update_data:
            await self._check_client(owner_id, update_data["client_id"])

        self._log_operation(
            "Updating note",
            note_id=note_id,
            fields=list(update_data.keys()),
        )

        note = await self._execute_db_operation(
            "update_note",
            self.repo.update(owner_id, note_id, **update_data),
        )
        return self._found(note, "Note")

    async def delete_note(self, owner_id: str, note_id: str) -> None:
        """
        Delete a note.

        Raises:
            NotFoundError: If the owner has no such note
        """
        self._log_operation("Deleting note", note_id=note_id)

        deleted = await self._execute_db_operation(
            "delete_note",
            self.repo.delete(owner_id, note_id),
        )
        if not deleted:
            raise NotFoundError("Note not found")
