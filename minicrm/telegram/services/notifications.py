"""
Notification Service.

Sends proactive messages to users via Telegram, with a per-chat rate limit
and delivery logging.

Usage:
    service = NotificationService(bot)
    result = await service.send(chat_id, "<b>Hello</b>")
    if not result.success:
        ...
"""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from minicrm.backend.core.logging import get_logger, log_with_source
from minicrm.backend.core.utils import utc_now

if TYPE_CHECKING:
    from aiogram import Bot

logger = get_logger(__name__)

# Telegram allows roughly one message per second to the same chat
RATE_LIMIT_PER_CHAT = 20  # Max messages per window per chat
RATE_LIMIT_WINDOW = 60  # Window in seconds


@dataclass
class NotificationResult:
    """Result of a notification send attempt."""

    success: bool
    chat_id: int
    message_id: int | None = None
    error: str | None = None
    rate_limited: bool = False
    timestamp: datetime = field(default_factory=utc_now)


class NotificationService:
    """
    Sends Telegram messages with per-chat rate limiting.

    Args:
        bot: aiogram Bot; the shared bot from ``get_bot()`` when omitted
    """

    def __init__(self, bot: "Bot | None" = None) -> None:
        self._bot = bot
        self._rate_limits: dict[int, list[float]] = defaultdict(list)

    @property
    def bot(self) -> "Bot":
        if self._bot is None:
            from minicrm.telegram.bot import get_bot

            self._bot = get_bot()
        return self._bot

    def _check_rate_limit(self, chat_id: int) -> bool:
        """Record an attempt; False if the chat is over its limit."""
        now = time.monotonic()
        window_start = now - RATE_LIMIT_WINDOW

        self._rate_limits[chat_id] = [
            ts for ts in self._rate_limits[chat_id] if ts > window_start
        ]
        if len(self._rate_limits[chat_id]) >= RATE_LIMIT_PER_CHAT:
            return False

        self._rate_limits[chat_id].append(now)
        return True

    async def send(
        self,
        chat_id: int,
        text: str,
        disable_notification: bool = False,
        reply_markup: Any = None,
    ) -> NotificationResult:
        """
        Send an HTML message to a chat.

        Never raises for delivery problems; inspect ``success`` instead.
        """
        if not self._check_rate_limit(chat_id):
            log_with_source(
                logger, "telegram", "warning", "Rate limit exceeded for chat",
                chat_id=chat_id,
            )
            return NotificationResult(
                success=False,
                chat_id=chat_id,
                rate_limited=True,
                error="Rate limit exceeded",
            )

        try:
            message = await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode="HTML",
                disable_notification=disable_notification,
                reply_markup=reply_markup,
            )
        except Exception as e:
            log_with_source(
                logger, "telegram", "error", "Failed to send notification",
                chat_id=chat_id, error=str(e),
            )
            return NotificationResult(success=False, chat_id=chat_id, error=str(e))

        log_with_source(
            logger, "telegram", "info", "Notification sent",
            chat_id=chat_id, message_id=message.message_id,
        )
        return NotificationResult(
            success=True,
            chat_id=chat_id,
            message_id=message.message_id,
        )


_notification_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """Get or create the notification service singleton."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
