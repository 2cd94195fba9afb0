"""
Owner Middleware.

Resolves the CRM owner for each update. The owner id is the sender's
Telegram user id, the same id the mini-app receives in its init data.
"""

from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update

from minicrm.backend.core.logging import get_logger

logger = get_logger(__name__)


def _sender(event: TelegramObject):
    if not isinstance(event, Update):
        return None
    if event.message:
        return event.message.from_user
    if event.callback_query:
        return event.callback_query.from_user
    return None


class OwnerMiddleware(BaseMiddleware):
    """
    Injects ``owner_id`` (str) and ``telegram_user`` into handler data.

    Updates without a human sender (channel posts, bots) are dropped.

    Usage:
        dp.update.outer_middleware(OwnerMiddleware())

        @router.message(Command("due"))
        async def cmd_due(message: Message, owner_id: str): ...
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        user = _sender(event)
        if user is None or user.is_bot:
            logger.debug("Update without a user sender dropped")
            return None

        data["telegram_user"] = user
        data["owner_id"] = str(user.id)
        return await handler(event, data)
