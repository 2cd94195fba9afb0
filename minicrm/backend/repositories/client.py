"""
Client Repository.

Data access layer for clients.
"""

from sqlalchemy import or_

from minicrm.backend.models.client import Client
from minicrm.backend.repositories.base import OwnedRepository


def escape_like(value: str) -> str:
    """Make ``%``, ``_`` and ``\\`` match literally in a LIKE pattern escaped with ``\\``."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ClientRepository(OwnedRepository[Client]):
    """Repository for Client model. Most recently changed first."""

    model = Client
    default_order = (Client.updated_at.desc(), Client.created_at.desc())

    async def search(self, owner_id: str, query: str) -> list[Client]:
        """
        Case-insensitive substring search over name, phone, email and company.

        Args:
            owner_id: Owner whose clients are searched
            query: Search text

        Returns:
            Matching clients, most recently changed first
        """
        pattern = f"%{escape_like(query)}%"
        return await self.list(
            owner_id,
            or_(
                Client.name.ilike(pattern, escape="\\"),
                Client.phone.ilike(pattern, escape="\\"),
                Client.email.ilike(pattern, escape="\\"),
                Client.company.ilike(pattern, escape="\\"),
            ),
        )

    async def names_by_id(self, owner_id: str, ids: set[str]) -> dict[str, str]:
        """Map client id to name for the owner's clients among ``ids``."""
        if not ids:
            return {}
        clients = await self.list(owner_id, Client.id.in_(ids), order_by=())
        return {client.id: client.name for client in clients}
