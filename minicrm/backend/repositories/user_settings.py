"""
User Settings Repository.
"""

from sqlalchemy import select

from minicrm.backend.models.user_settings import UserSettings
from minicrm.backend.repositories.base import OwnedRepository


class UserSettingsRepository(OwnedRepository[UserSettings]):
    """Repository for UserSettings model. At most one row per owner."""

    model = UserSettings

    async def get_for_owner(self, owner_id: str) -> UserSettings | None:
        result = await self.session.execute(
            select(UserSettings).where(UserSettings.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, owner_id: str, **fields) -> UserSettings:
        """Update the owner's row, creating it on first write."""
        instance = await self.get_for_owner(owner_id)
        if instance is None:
            return await self.create(owner_id, **fields)
        for key, value in fields.items():
            setattr(instance, key, value)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance
