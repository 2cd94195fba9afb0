"""
Bot and Dispatcher Configuration.

Creates the aiogram Bot and Dispatcher instances. Both are created lazily
so importing the package never requires a bot token.
"""

from typing import TYPE_CHECKING

from minicrm.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

_bot: "Bot | None" = None
_dispatcher: "Dispatcher | None" = None


def create_bot() -> "Bot":
    """
    Create the aiogram Bot with HTML parse mode.

    Raises:
        RuntimeError: If TELEGRAM_BOT_TOKEN is not configured
    """
    from aiogram import Bot
    from aiogram.client.default import DefaultBotProperties
    from aiogram.enums import ParseMode

    from minicrm.backend.core.config import get_settings

    settings = get_settings()

    if not settings.telegram_bot_token:
        raise RuntimeError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Set TELEGRAM_BOT_TOKEN environment variable or configure it in config/.env"
        )

    bot = Bot(
        token=settings.telegram_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    logger.info("Telegram bot created")
    return bot


def create_dispatcher() -> "Dispatcher":
    """Create the Dispatcher with middlewares and all routers included."""
    from aiogram import Dispatcher

    from minicrm.telegram.handlers import get_all_routers
    from minicrm.telegram.middlewares import setup_middlewares

    dp = Dispatcher()
    setup_middlewares(dp)

    for router in get_all_routers():
        dp.include_router(router)

    logger.info("Telegram dispatcher created with routers and middlewares")
    return dp


def get_bot() -> "Bot":
    """Get or create the shared Bot instance."""
    global _bot
    if _bot is None:
        _bot = create_bot()
    return _bot


def get_dispatcher() -> "Dispatcher":
    """Get or create the shared Dispatcher instance."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = create_dispatcher()
    return _dispatcher


async def setup_webhook(bot: "Bot", webhook_url: str, secret_token: str) -> None:
    """
    Register the webhook with Telegram.

    Args:
        bot: Bot instance
        webhook_url: Full webhook URL (e.g., https://example.com/webhook/telegram)
        secret_token: Secret echoed back in X-Telegram-Bot-Api-Secret-Token
    """
    dp = get_dispatcher()

    await bot.set_webhook(
        url=webhook_url,
        secret_token=secret_token or None,
        drop_pending_updates=True,
        allowed_updates=dp.resolve_used_update_types(),
    )
    logger.info("Webhook configured", extra={"webhook_url": webhook_url})


async def cleanup_bot(bot: "Bot") -> None:
    """Delete the webhook and close the bot's HTTP session."""
    global _bot
    await bot.delete_webhook()
    await bot.session.close()
    if bot is _bot:
        _bot = None
    logger.info("Bot webhook deleted and session closed")
