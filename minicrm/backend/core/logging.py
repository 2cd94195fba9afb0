"""
Centralized Logging Configuration.

structlog on top of stdlib logging, configured from
config/settings/logging.yaml. Every module logs through ``get_logger``.

Records carry ``timestamp``, ``level``, ``logger``, ``event``,
``func_name`` and ``lineno``, plus whatever is bound in the structlog
context: ``request_id`` and ``frontend`` from RequestContextMiddleware,
``owner_id`` once the caller is identified, ``source`` for work that runs
outside a request.

Usage:
    setup_logging()
    setup_logging(level="DEBUG", format_type="console")

    logger = get_logger(__name__)
    logger.info("Client created", extra={"client_id": client.id})
    log_with_source(logger, "poller", "info", "Reminder notified", reminder_id=r.id)

The JSONL file (logs/system.jsonl by default) holds every record; filter
it by ``source``.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from minicrm.backend.core.config import find_project_root, get_app_config
from minicrm.backend.core.config_schema import LoggingSchema

VALID_SOURCES = frozenset({
    "web",
    "cli",
    "telegram",
    "api",
    "tasks",
    "poller",
    "internal",
    "unknown",
})

# Chatty third-party loggers, held at WARNING whatever the root level
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiogram.event", "taskiq.receiver")


def _resolve_log_path(configured_path: str) -> Path:
    return find_project_root() / configured_path


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def _formatter(renderer: Processor, processors: list[Processor]) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=processors)


def _build_handlers(
    config: LoggingSchema,
    format_type: str,
    console_enabled: bool,
    file_enabled: bool,
) -> list[logging.Handler]:
    processors = _shared_processors()
    json_formatter = _formatter(structlog.processors.JSONRenderer(), processors)
    handlers: list[logging.Handler] = []

    if console_enabled:
        console = logging.StreamHandler(sys.stdout)
        if format_type == "console":
            console.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=True), processors))
        else:
            console.setFormatter(json_formatter)
        handlers.append(console)

    if file_enabled:
        file_config = config.handlers.file
        log_path = _resolve_log_path(file_config.path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=file_config.max_bytes,
            backupCount=file_config.backup_count,
            encoding="utf-8",
        )
        rotating.setFormatter(json_formatter)
        handlers.append(rotating)

    return handlers


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
    config: LoggingSchema | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Explicit arguments override logging.yaml. ``config`` replaces the YAML
    altogether (tests, tools that run without a project root).
    """
    if config is None:
        config = get_app_config().logging

    structlog.configure(
        processors=_shared_processors() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or config.level).upper()))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in _build_handlers(
        config,
        format_type or config.format,
        config.handlers.console.enabled if enable_console is None else enable_console,
        config.handlers.file.enabled if enable_file_logging is None else enable_file_logging,
    ):
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log with an explicit ``source`` (telegram, tasks, poller, cli).

    For code running outside an HTTP request. An unknown ``level`` raises
    AttributeError.
    """
    getattr(logger, level.lower())(message, source=source, **kwargs)
