"""
Webhook Endpoint for Telegram Bot.

FastAPI router that feeds Telegram webhook updates into the dispatcher.
Mounted by the API app when ``features.channel_telegram_enabled`` is on.
"""

import hmac
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, Response

from minicrm.backend.core.config import get_app_config, get_settings
from minicrm.backend.core.logging import get_logger

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

logger = get_logger(__name__)


def get_webhook_path() -> str:
    return get_app_config().application.telegram.webhook_path


def get_webhook_router(bot: "Bot", dp: "Dispatcher") -> APIRouter:
    """
    Create the router serving the webhook path.

    Usage:
        webhook_router = get_webhook_router(get_bot(), get_dispatcher())
        app.include_router(webhook_router)
    """
    from aiogram.types import Update

    router = APIRouter(tags=["telegram"])

    webhook_path = get_webhook_path()
    webhook_secret = get_settings().telegram_webhook_secret

    @router.post(webhook_path)
    async def telegram_webhook(request: Request) -> Response:
        """Validate the secret token header and process the update."""
        if webhook_secret:
            secret_header = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
            if not secret_header or not hmac.compare_digest(secret_header, webhook_secret):
                logger.warning(
                    "Invalid webhook secret token",
                    extra={"client_ip": request.client.host if request.client else None},
                )
                return Response(status_code=403)

        try:
            update = Update.model_validate(await request.json(), context={"bot": bot})
            await dp.feed_update(bot, update)
        except Exception as e:
            # Telegram retries non-2xx responses; a failed update is logged, not redelivered
            logger.error(
                "Error processing Telegram update",
                extra={"error": str(e)},
                exc_info=True,
            )

        return Response(status_code=200)

    @router.get(webhook_path + "/health")
    async def telegram_webhook_health() -> dict:
        return {"status": "healthy", "webhook_path": webhook_path}

    return router


def get_webhook_url(base_url: str) -> str:
    """Full webhook URL for ``base_url`` (e.g., https://example.com)."""
    return f"{base_url.rstrip('/')}{get_webhook_path()}"
