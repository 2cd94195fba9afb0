"""
Telegram Reminder Sink.

Delivers reminder alerts as Telegram messages. The owner id is the
Telegram user id, which is also the private chat id with the bot.
"""

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from minicrm.backend.core.exceptions import ExternalServiceError
from minicrm.backend.core.logging import get_logger
from minicrm.backend.services.settings import SettingsService
from minicrm.backend.tasks.reminders import DueReminder, ReminderAlertSink
from minicrm.telegram.keyboards.common import get_reminder_keyboard
from minicrm.telegram.services.notifications import NotificationService

if TYPE_CHECKING:
    from aiogram import Bot

logger = get_logger(__name__)


class TelegramReminderSink(ReminderAlertSink):
    """
    Sends reminder alerts through NotificationService.

    The owner's ``sound`` setting decides whether the message is sent
    silently; with ``notifications`` off nothing is sent and the alert
    still counts as delivered.

    Raises:
        ExternalServiceError: From ``alert`` when Telegram did not accept
            the message, so the reminder stays due
    """

    def __init__(
        self,
        bot: "Bot | None" = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        notifications: NotificationService | None = None,
        webapp_url: str | None = None,
    ) -> None:
        self._notifications = notifications or NotificationService(bot)
        self._session_factory = session_factory
        self._webapp_url = webapp_url

    @property
    def webapp_url(self) -> str:
        if self._webapp_url is None:
            from minicrm.backend.core.config import get_app_config

            self._webapp_url = get_app_config().application.telegram.webapp_url
        return self._webapp_url

    async def _owner_settings(self, owner_id: str) -> dict:
        if self._session_factory is None:
            return {"notifications": True, "sound": True}
        async with self._session_factory() as session:
            return await SettingsService(session).get_settings(owner_id)

    async def alert(self, owner_id: str, reminder: DueReminder, message: str) -> None:
        try:
            chat_id = int(owner_id)
        except ValueError as e:
            raise ExternalServiceError(f"Owner {owner_id!r} is not a Telegram chat") from e

        settings = await self._owner_settings(owner_id)
        if not settings.get("notifications", True):
            logger.info(
                "Reminder alert skipped, notifications disabled",
                extra={"owner_id": owner_id, "reminder_id": reminder.id},
            )
            return

        result = await self._notifications.send(
            chat_id,
            message,
            disable_notification=not settings.get("sound", True),
            reply_markup=get_reminder_keyboard(self.webapp_url, reminder.id),
        )
        if not result.success:
            raise ExternalServiceError(result.error or "Telegram delivery failed")
