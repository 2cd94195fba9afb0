"""
Base Repository.

Owner-scoped CRUD shared by every table. Every query filters on
``owner_id``; a record that belongs to someone else behaves exactly like
a record that does not exist (``None`` / ``False``).
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.core.logging import get_logger
from minicrm.backend.models.base import Base

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class OwnedRepository(Generic[ModelType]):
    """
    Base repository with owner-scoped CRUD operations.

    Subclasses set the model class and an optional default ordering:

        class ClientRepository(OwnedRepository[Client]):
            model = Client
            default_order = (Client.updated_at.desc(),)
    """

    model: type[ModelType]
    default_order: tuple[Any, ...] = ()

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _owned(self, owner_id: str):
        return select(self.model).where(self.model.owner_id == owner_id)

    async def list(
        self,
        owner_id: str,
        *criteria: Any,
        order_by: tuple[Any, ...] | None = None,
    ) -> list[ModelType]:
        """List the owner's records matching all criteria."""
        stmt = self._owned(owner_id).where(*criteria)
        ordering = self.default_order if order_by is None else order_by
        if ordering:
            stmt = stmt.order_by(*ordering)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get(self, owner_id: str, id: str | UUID) -> ModelType | None:
        """Get one of the owner's records, or None."""
        result = await self.session.execute(
            self._owned(owner_id).where(self.model.id == str(id))
        )
        return result.scalar_one_or_none()

    async def create(self, owner_id: str, **fields: Any) -> ModelType:
        """Create a record owned by ``owner_id``."""
        instance = self.model(owner_id=owner_id, **fields)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, owner_id: str, id: str | UUID, **patch: Any) -> ModelType | None:
        """
        Apply a partial update to one of the owner's records.

        Unknown keys are ignored and ``owner_id`` can never be changed.

        Returns:
            The updated record, or None if the owner has no such record
        """
        instance = await self.get(owner_id, id)
        if instance is None:
            return None

        for key, value in patch.items():
            if key in ("id", "owner_id"):
                continue
            if hasattr(instance, key):
                setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, owner_id: str, id: str | UUID) -> bool:
        """Delete one of the owner's records. Returns False if there was none."""
        instance = await self.get(owner_id, id)
        if instance is None:
            return False
        await self.session.delete(instance)
        await self.session.flush()
        return True

    async def delete_where(self, owner_id: str, *criteria: Any) -> int:
        """Bulk delete the owner's records matching all criteria."""
        result = await self.session.execute(
            delete(self.model)
            .where(self.model.owner_id == owner_id)
            .where(*criteria)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return result.rowcount or 0

    async def count(self, owner_id: str, *criteria: Any) -> int:
        """Count the owner's records matching all criteria."""
        result = await self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.owner_id == owner_id)
            .where(*criteria)
        )
        return result.scalar_one()

    async def exists(self, owner_id: str, id: str | UUID) -> bool:
        """Check whether the owner has a record with this ID."""
        result = await self.session.execute(
            select(self.model.id)
            .where(self.model.owner_id == owner_id)
            .where(self.model.id == str(id))
        )
        return result.scalar_one_or_none() is not None
