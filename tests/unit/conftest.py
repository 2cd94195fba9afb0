"""
Unit Test Fixtures.

Fixtures for unit tests. External systems (Telegram, Redis) are mocked;
service tests use the in-memory SQLite session from the root conftest.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from minicrm.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
    RemindersSchema,
)
from minicrm.backend.tasks.reminders import DueReminder, ReminderAlertSink


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_repository(mock_db_session: AsyncMock):
            repo = ClientRepository(mock_db_session)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


# =============================================================================
# Settings Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_settings() -> MagicMock:
    """
    Mock secrets.

    Usage:
        with patch("module.get_settings", return_value=mock_settings):
            ...
    """
    settings = MagicMock()
    settings.db_password = "test_pass"
    settings.redis_password = ""
    settings.telegram_bot_token = "123456:TEST-TOKEN"
    settings.telegram_webhook_secret = ""
    return settings


def build_app_config(**feature_overrides: Any) -> MagicMock:
    """An AppConfig stand-in built from the real schemas."""
    config = MagicMock()
    config.application = ApplicationSchema(
        name="Test App",
        version="1.0.0",
        description="Test application",
        environment="test",
        debug=True,
        api_prefix="/api/v1",
        timezone="Europe/Chisinau",
        server={"host": "127.0.0.1", "port": 8000},
        cors={"origins": []},
        timeouts={"database": 5, "external_api": 5, "background": 30},
        health_checks={"ready_timeout_seconds": 2},
        telegram={"webhook_path": "/webhook/telegram", "webapp_url": "https://crm.example.com"},
    )
    config.database = DatabaseSchema(
        url="sqlite+aiosqlite:///:memory:",
        host="localhost",
        port=5432,
        name="test_db",
        user="test_user",
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        echo=False,
        redis={
            "host": "localhost",
            "port": 6379,
            "db": 0,
            "broker": {"queue_name": "test_tasks", "result_expiry_seconds": 60},
        },
    )
    config.logging = LoggingSchema(
        level="DEBUG",
        format="console",
        handlers={
            "console": {"enabled": True},
            "file": {
                "enabled": False,
                "path": "logs/test.jsonl",
                "max_bytes": 10485760,
                "backup_count": 1,
            },
        },
    )
    features = {
        "auth_verify_init_data": False,
        "api_detailed_errors": False,
        "channel_telegram_enabled": False,
        "reminders_in_process_sweep_enabled": False,
        "clients_phone_mask_enabled": True,
    }
    features.update(feature_overrides)
    config.features = FeaturesSchema(**features)
    config.reminders = RemindersSchema(
        poll_interval_seconds=60,
        default_time="09:00",
        sweep_cron="* * * * *",
        init_data_max_age_seconds=86400,
    )
    return config


@pytest.fixture
def mock_app_config() -> MagicMock:
    """
    Application configuration with test values.

    Usage:
        with patch("module.get_app_config", return_value=mock_app_config):
            ...
    """
    return build_app_config()


# =============================================================================
# Telegram Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_bot() -> AsyncMock:
    """aiogram Bot whose send_message returns a message with id 12345."""
    message = MagicMock()
    message.message_id = 12345

    bot = AsyncMock()
    bot.send_message = AsyncMock(return_value=message)
    bot.session = AsyncMock()
    return bot


class RecordingAlertSink(ReminderAlertSink):
    """
    Alert sink that records alerts and can be told to fail.

    Args:
        fail_ids: Reminder ids whose alert raises
        acknowledge: Whether the sink supports acknowledgement
    """

    def __init__(self, fail_ids: set[str] | None = None, acknowledge: bool = False) -> None:
        self.fail_ids = fail_ids or set()
        self.supports_acknowledgement = acknowledge
        self.alerts: list[tuple[str, DueReminder, str]] = []
        self.acknowledged: list[str] = []

    async def alert(self, owner_id: str, reminder: DueReminder, message: str) -> None:
        if reminder.id in self.fail_ids:
            raise RuntimeError(f"delivery failed for {reminder.id}")
        self.alerts.append((owner_id, reminder, message))

    async def acknowledge(self, owner_id: str) -> None:
        self.acknowledged.append(owner_id)


@pytest.fixture
def recording_sink() -> RecordingAlertSink:
    return RecordingAlertSink()


@pytest.fixture
def sink_factory() -> type[RecordingAlertSink]:
    """RecordingAlertSink class, for tests that need a configured sink."""
    return RecordingAlertSink


@pytest.fixture
def app_config_factory():
    """build_app_config, for tests that override feature flags."""
    return build_app_config
