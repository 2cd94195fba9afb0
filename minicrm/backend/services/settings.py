"""
Settings Service.

Per-owner preferences. Reading never fails for a new owner: missing rows
are reported as the defaults.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.models.user_settings import DEFAULT_SETTINGS
from minicrm.backend.repositories.user_settings import UserSettingsRepository
from minicrm.backend.schemas.settings import SettingsUpdate
from minicrm.backend.services.base import BaseService


class SettingsService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = UserSettingsRepository(session)

    async def get_settings(self, owner_id: str) -> dict:
        """The owner's settings, or the defaults when none were saved."""
        row = await self._execute_db_operation(
            "get_settings", self.repo.get_for_owner(owner_id)
        )
        if row is None:
            return dict(DEFAULT_SETTINGS)
        return {key: getattr(row, key) for key in DEFAULT_SETTINGS}

    async def update_settings(self, owner_id: str, data: SettingsUpdate) -> dict:
        """Save the sent fields, keeping current values for the rest."""
        current = await self.get_settings(owner_id)
        current.update(data.model_dump(exclude_unset=True, exclude_none=True))

        self._log_operation("Saving settings", fields=sorted(current))
        row = await self._execute_db_operation(
            "save_settings", self.repo.upsert(owner_id, **current)
        )
        return {key: getattr(row, key) for key in DEFAULT_SETTINGS}
