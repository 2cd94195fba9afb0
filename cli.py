#!/usr/bin/env python3
"""
MiniCRM CLI.

One command, one --service per process. Long-running services (server,
worker, scheduler, telegram-poll, reminder-poll) run until Ctrl+C; the
rest do their job and exit.

Usage:
    python cli.py --help
    python cli.py --service server --reload --verbose
    python cli.py --service reminder-poll --owner-id 123456789 --dry-run
    python cli.py --service sweep
    python cli.py --service health
    python cli.py --service migrate --migrate-action upgrade
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from minicrm.backend.core.logging import get_logger, log_with_source, setup_logging

SERVICES = [
    "server", "worker", "scheduler", "telegram-poll", "reminder-poll",
    "sweep", "health", "config", "migrate",
]
MIGRATE_ACTIONS = ["upgrade", "downgrade", "current", "history", "autogenerate"]


def _fail(message: str, code: int = 1) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(code)


def validate_project_root() -> Path:
    if not (PROJECT_ROOT / ".project_root").exists():
        _fail(".project_root not found. Run from project root.")
    return PROJECT_ROOT


@click.command()
@click.option("--service", "-s", type=click.Choice(SERVICES), default="health",
              help="Service or command to run.")
@click.option("--verbose", "-v", is_flag=True, help="INFO level logging.")
@click.option("--debug", "-d", is_flag=True, help="DEBUG level logging.")
@click.option("--host", default=None, help="Server host (server only).")
@click.option("--port", default=None, type=int, help="Server port (server only).")
@click.option("--reload", is_flag=True, help="Auto-reload (server only).")
@click.option("--workers", default=1, type=int, help="Worker processes (worker only).")
@click.option("--owner-id", default=None,
              help="Telegram user id whose reminders are polled (reminder-poll only).")
@click.option("--interval", default=None, type=float,
              help="Poll interval in seconds (reminder-poll only, default from reminders.yaml).")
@click.option("--dry-run", is_flag=True,
              help="Log alerts instead of sending them (reminder-poll and sweep).")
@click.option("--migrate-action", type=click.Choice(MIGRATE_ACTIONS), default="current",
              help="Alembic action (migrate only).")
@click.option("--revision", default="head", help="Target revision for upgrade/downgrade.")
@click.option("-m", "--message", default=None, help="Revision message (autogenerate only).")
def main(
    service: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    workers: int,
    owner_id: str | None,
    interval: float | None,
    dry_run: bool,
    migrate_action: str,
    revision: str,
    message: str | None,
) -> None:
    """
    MiniCRM CLI.

    \b
    Examples:
        python cli.py --service server --reload
        python cli.py --service worker --workers 2
        python cli.py --service scheduler
        python cli.py --service telegram-poll --verbose
        python cli.py --service reminder-poll --owner-id 123456789 --interval 30
        python cli.py --service sweep --dry-run
        python cli.py --service migrate --migrate-action autogenerate -m "add tags"
    """
    validate_project_root()

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level=log_level, format_type="console")
    structlog.contextvars.bind_contextvars(source="cli")
    logger = get_logger(__name__)
    logger.debug("CLI invoked", service=service, log_level=log_level)

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "worker":
        run_worker(logger, workers)
    elif service == "scheduler":
        run_scheduler(logger)
    elif service == "telegram-poll":
        run_telegram_poll(logger)
    elif service == "reminder-poll":
        run_reminder_poll(logger, owner_id, interval, dry_run)
    elif service == "sweep":
        run_sweep(logger, dry_run)
    elif service == "health":
        check_health(logger)
    elif service == "config":
        show_config(logger)
    elif service == "migrate":
        run_migrations(logger, migrate_action, revision, message)


def _run_subprocess(logger, cmd: list[str], name: str) -> None:
    try:
        subprocess.run(cmd, check=True, cwd=PROJECT_ROOT)
    except KeyboardInterrupt:
        log_with_source(logger, "cli", "info", f"{name} stopped")
    except subprocess.CalledProcessError as e:
        log_with_source(logger, "cli", "error", f"{name} exited with an error", exit_code=e.returncode)
        sys.exit(e.returncode)


def _load_config(logger):
    from minicrm.backend.core.config import get_app_config

    try:
        return get_app_config()
    except ValueError as e:
        log_with_source(logger, "cli", "error", "Configuration invalid", error=str(e))
        _fail(f"could not load config/settings: {e}")


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Serve the mini-app API (and the Telegram webhook, when enabled) with uvicorn."""
    server = _load_config(logger).application.server
    server_host = host or server.host
    server_port = port or server.port

    cmd = [
        sys.executable, "-m", "uvicorn", "minicrm.backend.main:app",
        "--host", server_host, "--port", str(server_port),
    ]
    if reload:
        cmd.append("--reload")

    log_with_source(logger, "cli", "info", "Starting server", host=server_host, port=server_port)
    click.echo(f"Serving MiniCRM at http://{server_host}:{server_port} (Ctrl+C to stop)")
    _run_subprocess(logger, cmd, "Server")


def run_worker(logger, workers: int) -> None:
    """Run the taskiq worker that executes the due-reminder sweep."""
    _load_config(logger)
    cmd = [
        sys.executable, "-m", "taskiq", "worker",
        "minicrm.backend.tasks.broker:broker", "--workers", str(workers),
    ]
    click.echo(f"Starting taskiq worker ({workers} process(es), Ctrl+C to stop)")
    _run_subprocess(logger, cmd, "Worker")


def run_scheduler(logger) -> None:
    """Run the taskiq scheduler; exactly one instance per deployment."""
    from minicrm.backend.tasks.scheduled import get_scheduled_tasks

    for task_name, task in get_scheduled_tasks().items():
        click.echo(f"  {task_name}: {task['schedule'][0]['cron']}")

    cmd = [
        sys.executable, "-m", "taskiq", "scheduler",
        "minicrm.backend.tasks.scheduler:scheduler",
    ]
    click.echo("Starting taskiq scheduler (run a single instance, Ctrl+C to stop)")
    _run_subprocess(logger, cmd, "Scheduler")


def run_telegram_poll(logger) -> None:
    """Run the bot with long polling instead of the webhook."""
    if not _load_config(logger).features.channel_telegram_enabled:
        _fail("channel_telegram_enabled is false in features.yaml")

    from minicrm.telegram.bot import create_bot, create_dispatcher

    async def _poll() -> None:
        bot = create_bot()
        try:
            await bot.delete_webhook(drop_pending_updates=True)
            await create_dispatcher().start_polling(bot)
        finally:
            await bot.session.close()

    click.echo("Telegram bot polling (send /start, Ctrl+C to stop)")
    try:
        asyncio.run(_poll())
    except KeyboardInterrupt:
        log_with_source(logger, "cli", "info", "Telegram polling stopped")
    except RuntimeError as e:
        _fail(str(e))


def _build_sink(dry_run: bool, session_factory):
    """Alert sink plus the bot to close afterwards (None for a dry run)."""
    from minicrm.backend.tasks.reminders import LoggingAlertSink

    if dry_run:
        return LoggingAlertSink(), None

    from minicrm.telegram.bot import create_bot
    from minicrm.telegram.services.reminders import TelegramReminderSink

    bot = create_bot()
    return TelegramReminderSink(bot, session_factory), bot


async def _poll_reminders(owner_id: str, interval: float, dry_run: bool) -> None:
    from minicrm.backend.core.database import dispose_engine, get_session_factory
    from minicrm.backend.tasks.reminders import ReminderPoller

    session_factory = get_session_factory()
    sink, bot = _build_sink(dry_run, session_factory)
    try:
        async with ReminderPoller(owner_id, sink, session_factory, interval_seconds=interval):
            await asyncio.Event().wait()
    finally:
        if bot is not None:
            await bot.session.close()
        await dispose_engine()


def run_reminder_poll(logger, owner_id: str | None, interval: float | None, dry_run: bool) -> None:
    """Poll one owner's due reminders until interrupted."""
    if not owner_id:
        _fail("--owner-id is required for reminder-poll")

    interval = interval or _load_config(logger).reminders.poll_interval_seconds
    if interval <= 0:
        _fail("--interval must be positive")

    structlog.contextvars.bind_contextvars(owner_id=owner_id)
    log_with_source(logger, "poller", "info", "Starting reminder poller", interval=interval, dry_run=dry_run)
    click.echo(f"Polling reminders for {owner_id} every {interval:g}s (Ctrl+C to stop)")

    try:
        asyncio.run(_poll_reminders(owner_id, interval, dry_run))
    except KeyboardInterrupt:
        log_with_source(logger, "poller", "info", "Reminder poller stopped")
    except RuntimeError as e:
        _fail(str(e))


async def _sweep_once(dry_run: bool):
    from minicrm.backend.core.database import dispose_engine, get_session_factory
    from minicrm.backend.tasks.reminders import sweep_due_reminders

    session_factory = get_session_factory()
    sink, bot = _build_sink(dry_run, session_factory)
    try:
        return await sweep_due_reminders(session_factory, sink)
    finally:
        if bot is not None:
            await bot.session.close()
        await dispose_engine()


def run_sweep(logger, dry_run: bool) -> None:
    """Dispatch everything due right now, for every owner, then exit."""
    _load_config(logger)
    reports = asyncio.run(_sweep_once(dry_run))

    if not reports:
        click.echo("Nothing due.")
        return

    for report in reports:
        status = click.style("ok", fg="green") if report.ok else click.style("partial", fg="yellow")
        click.echo(
            f"  {report.owner_id}: {len(report.notified)}/{len(report.due)} notified [{status}]"
        )
    if any(not report.ok for report in reports):
        sys.exit(1)


def check_health(logger) -> None:
    """Run the readiness checks against the configured database and Redis."""
    from minicrm.backend.api.health import check_database, check_redis
    from minicrm.backend.core.database import dispose_engine

    app_config = _load_config(logger)
    click.echo(f"{app_config.application.name} {app_config.application.version}\n")

    async def _checks() -> dict:
        try:
            return {"database": await check_database(), "redis": await check_redis()}
        finally:
            await dispose_engine()

    results = asyncio.run(_checks())

    failed = False
    for name, result in results.items():
        state = result["status"]
        if state == "healthy":
            label = click.style("✓ healthy", fg="green")
            detail = f"{result['latency_ms']} ms"
        elif state == "not_configured":
            label = click.style("- skipped", fg="yellow")
            detail = "not configured"
        else:
            failed = True
            label = click.style("✗ " + state, fg="red")
            detail = result.get("error", "")
        click.echo(f"  {label}  {name} ({detail})")

    log_with_source(logger, "cli", "info", "Health checked", results=results)
    if failed:
        sys.exit(1)


def _echo_section(title: str, values: dict, indent: int = 2) -> None:
    if title:
        click.echo(f"\n{title}")
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_section("", value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config(logger) -> None:
    """Print every settings file as loaded and validated."""
    app_config = _load_config(logger)
    for name in ("application", "database", "logging", "features", "reminders"):
        _echo_section(f"{name}.yaml", getattr(app_config, name).model_dump())


def run_migrations(logger, migrate_action: str, revision: str, message: str | None) -> None:
    """Run Alembic against the configured database."""
    alembic_ini = PROJECT_ROOT / "minicrm" / "backend" / "migrations" / "alembic.ini"
    cmd = [sys.executable, "-m", "alembic", "-c", str(alembic_ini)]

    if migrate_action in ("upgrade", "downgrade"):
        cmd.extend([migrate_action, revision])
    elif migrate_action == "current":
        cmd.append("current")
    elif migrate_action == "history":
        cmd.extend(["history", "--verbose"])
    elif migrate_action == "autogenerate":
        if not message:
            _fail("--message/-m is required for autogenerate")
        cmd.extend(["revision", "--autogenerate", "-m", message])

    log_with_source(logger, "cli", "info", "Running migrations", action=migrate_action, revision=revision)
    _run_subprocess(logger, cmd, "Alembic")


if __name__ == "__main__":
    main()
