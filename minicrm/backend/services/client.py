"""
Client Service.

Business logic for clients: validation, search, phone normalization and
the cascading delete that removes a client's notes and reminders.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.core.phone import format_phone, unformat_phone
from minicrm.backend.models.client import Client
from minicrm.backend.repositories.client import ClientRepository
from minicrm.backend.repositories.note import NoteRepository
from minicrm.backend.repositories.reminder import ReminderRepository
from minicrm.backend.schemas.client import ClientCreate, ClientUpdate
from minicrm.backend.services.base import BaseService

OPTIONAL_FIELDS = ("phone", "email", "company", "notes")


@dataclass(frozen=True)
class CascadeResult:
    """What a client delete removed."""

    client_id: str
    notes_deleted: int
    reminders_deleted: int


class ClientService(BaseService):
    """
    Service for client business logic.

    Args:
        session: Database session
        phone_mask: Normalize phone numbers with the phone mask. Read from
            ``features.clients_phone_mask_enabled`` when omitted.
    """

    def __init__(self, session: AsyncSession, phone_mask: bool | None = None) -> None:
        super().__init__(session)
        self.clients = ClientRepository(session)
        self.notes = NoteRepository(session)
        self.reminders = ReminderRepository(session)
        if phone_mask is None:
            from minicrm.backend.core.config import get_app_config

            phone_mask = get_app_config().features.clients_phone_mask_enabled
        self._phone_mask = phone_mask

    def _normalize_phone(self, phone: str | None) -> str | None:
        phone = self._clean_optional(phone)
        if phone is None or not self._phone_mask or not unformat_phone(phone):
            return phone
        return format_phone(phone)

    def _clean_fields(self, values: dict) -> dict:
        cleaned = {}
        for key in OPTIONAL_FIELDS:
            if key in values:
                cleaned[key] = self._clean_optional(values[key])
        if "phone" in cleaned:
            cleaned["phone"] = self._normalize_phone(cleaned["phone"])
        return cleaned

    async def list_clients(self, owner_id: str, search: str | None = None) -> list[Client]:
        """
        List the owner's clients, most recently changed first.

        Args:
            owner_id: Owner of the clients
            search: Case-insensitive match on name, phone, email or company
        """
        search = (search or "").strip()
        if search:
            self._log_debug("Searching clients", query=search)
            return await self._execute_db_operation(
                "search_clients", self.clients.search(owner_id, search)
            )
        return await self._execute_db_operation("list_clients", self.clients.list(owner_id))

    async def get_client(self, owner_id: str, client_id: str) -> Client:
        """
        Raises:
            NotFoundError: If the owner has no such client
        """
        client = await self._execute_db_operation(
            "get_client", self.clients.get(owner_id, client_id)
        )
        return self._found(client, "Client")

    async def create_client(self, owner_id: str, data: ClientCreate) -> Client:
        """
        Create a client.

        Raises:
            ValidationError: If name is blank
        """
        values = data.model_dump()
        self._validate_required(values, ["name"])

        client = await self._execute_db_operation(
            "create_client",
            self.clients.create(
                owner_id,
                name=values["name"].strip(),
                **self._clean_fields(values),
            ),
        )
        self._log_operation("Client created", client_id=client.id)
        return client

    async def update_client(self, owner_id: str, client_id: str, data: ClientUpdate) -> Client:
        """
        Apply a partial update. A sent name must not be blank.

        Raises:
            NotFoundError: If the owner has no such client
            ValidationError: If name is sent blank
        """
        patch = data.model_dump(exclude_unset=True)
        fields = self._clean_fields(patch)
        if "name" in patch:
            self._validate_required(patch, ["name"])
            fields["name"] = patch["name"].strip()

        if not fields:
            return await self.get_client(owner_id, client_id)

        self._log_operation("Updating client", client_id=client_id, fields=list(fields))
        client = await self._execute_db_operation(
            "update_client", self.clients.update(owner_id, client_id, **fields)
        )
        return self._found(client, "Client")

    async def delete_client(self, owner_id: str, client_id: str) -> CascadeResult:
        """
        Delete a client together with its notes and reminders.

        Stages run in order: verify the client, delete its notes, delete its
        reminders, delete the client. All stages are owner-scoped and share
        the caller's transaction; a failed stage raises DatabaseError naming
        it and the caller rolls back.

        Raises:
            NotFoundError: If the owner has no such client
            DatabaseError: If any stage fails
        """
        await self.get_client(owner_id, client_id)

        notes_deleted = await self._execute_db_operation(
            "delete_client_notes", self.notes.delete_for_client(owner_id, client_id)
        )
        reminders_deleted = await self._execute_db_operation(
            "delete_client_reminders", self.reminders.delete_for_client(owner_id, client_id)
        )
        await self._execute_db_operation(
            "delete_client", self.clients.delete(owner_id, client_id)
        )

        self._log_operation(
            "Client deleted",
            client_id=client_id,
            notes_deleted=notes_deleted,
            reminders_deleted=reminders_deleted,
        )
        return CascadeResult(
            client_id=client_id,
            notes_deleted=notes_deleted,
            reminders_deleted=reminders_deleted,
        )
