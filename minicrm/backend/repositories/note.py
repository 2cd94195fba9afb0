"""
Note Repository.

Data access layer for notes.
"""

from minicrm.backend.models.note import Note
from minicrm.backend.repositories.base import OwnedRepository


class NoteRepository(OwnedRepository[Note]):
    """Repository for Note model. Newest first."""

    model = Note
    default_order = (Note.created_at.desc(),)

    async def list_for_client(self, owner_id: str, client_id: str) -> list[Note]:
        """Notes attached to one client."""
        return await self.list(owner_id, Note.client_id == client_id)

    async def delete_for_client(self, owner_id: str, client_id: str) -> int:
        """Delete every note attached to one client. Returns the count."""
        return await self.delete_where(owner_id, Note.client_id == client_id)
