"""
FastAPI Application Entry Point.

Serves the mini-app API, health checks and, when enabled, the Telegram
webhook. Optionally runs the due-reminder sweep inside the process.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from minicrm.backend.api import health
from minicrm.backend.api.v1 import router as api_v1_router
from minicrm.backend.core.config import AppConfig, get_app_config
from minicrm.backend.core.database import dispose_engine
from minicrm.backend.core.exception_handlers import register_exception_handlers
from minicrm.backend.core.logging import get_logger, setup_logging
from minicrm.backend.core.middleware import RequestContextMiddleware
from minicrm.backend.tasks.periodic import PeriodicTask

logger = get_logger(__name__)

_app: FastAPI | None = None


def _create_reminder_sweep(app_config: AppConfig) -> PeriodicTask:
    """Periodic sweep that alerts every owner's due reminders through Telegram."""
    from minicrm.backend.core.database import get_session_factory
    from minicrm.backend.tasks.reminders import sweep_due_reminders
    from minicrm.telegram.bot import get_bot
    from minicrm.telegram.services.reminders import TelegramReminderSink

    session_factory = get_session_factory()
    sink = TelegramReminderSink(get_bot(), session_factory)

    return PeriodicTask(
        "reminder-sweep",
        app_config.reminders.poll_interval_seconds,
        lambda: sweep_due_reminders(session_factory, sink),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    app_config = get_app_config()
    setup_logging(config=app_config.logging)

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
        },
    )

    sweep: PeriodicTask | None = None
    if app_config.features.reminders_in_process_sweep_enabled:
        sweep = _create_reminder_sweep(app_config)
        sweep.start()

    try:
        yield
    finally:
        logger.info("Application shutting down")
        if sweep is not None:
            await sweep.stop()
        if app_config.features.reminders_in_process_sweep_enabled or (
            app_config.features.channel_telegram_enabled
        ):
            from minicrm.telegram.bot import get_bot

            await get_bot().session.close()
        await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app_config = get_app_config()
    app_settings = app_config.application

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)

    cors_origins = app_settings.cors.origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=app_settings.api_prefix)

    _mount_channel_adapters(app, app_config)

    return app


def _mount_channel_adapters(app: FastAPI, app_config: AppConfig) -> None:
    """Mount the Telegram webhook when the channel is enabled."""
    if not app_config.features.channel_telegram_enabled:
        return

    try:
        from minicrm.telegram.bot import get_bot, get_dispatcher
        from minicrm.telegram.webhook import get_webhook_router

        app.include_router(get_webhook_router(get_bot(), get_dispatcher()))
        logger.info("Telegram channel mounted")
    except Exception as e:
        logger.error(
            "Failed to mount Telegram channel",
            extra={"error": str(e)},
        )
        raise


def get_app() -> FastAPI:
    """
    Get the application instance (lazy initialization).

    This function creates the app on first call and caches it.
    Use this instead of importing `app` directly to avoid
    import-time configuration errors.
    """
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: `uvicorn minicrm.backend.main:app`
def __getattr__(name: str) -> FastAPI:
    """Support lazy access to `app` for uvicorn compatibility."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
