"""
Configuration Management.

Two sources, nothing hardcoded:

    config/.env               secrets (DB_PASSWORD, REDIS_PASSWORD,
                              TELEGRAM_BOT_TOKEN, TELEGRAM_WEBHOOK_SECRET)
    config/settings/*.yaml    everything else, one strict schema per file

Both are located from the project root, the nearest parent directory of
the working directory that holds a ``.project_root`` marker.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from minicrm.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
    RemindersSchema,
)

# Section name -> (file under config/settings, schema)
CONFIG_SECTIONS: dict[str, tuple[str, type[BaseModel]]] = {
    "application": ("application.yaml", ApplicationSchema),
    "database": ("database.yaml", DatabaseSchema),
    "logging": ("logging.yaml", LoggingSchema),
    "features": ("features.yaml", FeaturesSchema),
    "reminders": ("reminders.yaml", RemindersSchema),
}


def find_project_root() -> Path:
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """find_project_root for entry scripts: exits with a message instead of raising."""
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Raw contents of config/settings/<filename>; an empty file is ``{}``."""
    config_path = find_project_root() / "config" / "settings" / filename
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets from config/.env. Passwords and tokens only."""

    db_password: str = ""
    redis_password: str = ""
    telegram_bot_token: str = ""
    telegram_webhook_secret: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig:
    """
    Every settings file, loaded and validated once.

    A file that does not match its schema fails the whole load with a
    ValueError naming the file, so a bad deploy stops at startup.
    """

    application: ApplicationSchema
    database: DatabaseSchema
    logging: LoggingSchema
    features: FeaturesSchema
    reminders: RemindersSchema

    def __init__(self) -> None:
        for section, (filename, schema) in CONFIG_SECTIONS.items():
            raw = load_yaml_config(filename)
            try:
                setattr(self, section, schema(**raw))
            except ValidationError as e:
                raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e


@lru_cache
def get_settings() -> Settings:
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    return AppConfig()


def get_database_url(async_driver: bool = True) -> str:
    """
    Database URL for SQLAlchemy.

    ``database.url`` wins when set (a SQLite file for local development);
    otherwise a PostgreSQL URL is assembled from database.yaml and the
    DB_PASSWORD secret, with the asyncpg driver unless ``async_driver`` is
    false.
    """
    db = get_app_config().database
    if db.url:
        return db.url
    password = get_settings().db_password
    driver = "postgresql+asyncpg" if async_driver else "postgresql"
    return f"{driver}://{db.user}:{password}@{db.host}:{db.port}/{db.name}"


def get_redis_url() -> str:
    redis = get_app_config().database.redis
    password = get_settings().redis_password
    return f"redis://:{password}@{redis.host}:{redis.port}/{redis.db}"
