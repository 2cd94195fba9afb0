"""
Health Check Endpoints.

Provides liveness, readiness, and detailed health checks.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (database and Redis reachable); also
  keeps an idle hosted database awake when pinged periodically
- /health/detailed: Component-by-component status (for debugging)
"""

import asyncio
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from minicrm.backend.core.logging import get_logger
from minicrm.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database() -> dict[str, Any]:
    """Run ``SELECT 1`` and report status and latency."""
    from minicrm.backend.core.config import get_app_config
    from minicrm.backend.core.database import get_session_factory

    db_config = get_app_config().database
    if not db_config.url and not (db_config.host and db_config.name):
        return {"status": "not_configured"}

    try:
        start = utc_now()
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
        latency_ms = int((utc_now() - start).total_seconds() * 1000)
        return {"status": "healthy", "latency_ms": latency_ms}
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}


async def check_redis() -> dict[str, Any]:
    """Ping Redis and report status and latency."""
    import redis.asyncio as redis

    from minicrm.backend.core.config import get_redis_url

    try:
        start = utc_now()
        client = redis.from_url(get_redis_url())
        try:
            await client.ping()
        finally:
            await client.aclose()
        latency_ms = int((utc_now() - start).total_seconds() * 1000)
        return {"status": "healthy", "latency_ms": latency_ms}
    except Exception as e:
        logger.warning("Redis health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}


async def _run_checks(timeout: float | None = None) -> dict[str, dict[str, Any]]:
    db_result: dict[str, Any] = {"status": "error", "error": "check did not run"}
    redis_result: dict[str, Any] = {"status": "error", "error": "check did not run"}

    try:
        async with asyncio.timeout(timeout):
            try:
                async with asyncio.TaskGroup() as tg:
                    db_task = tg.create_task(check_database())
                    redis_task = tg.create_task(check_redis())
                db_result = db_task.result()
                redis_result = redis_task.result()
            except* Exception as eg:
                for exc in eg.exceptions:
                    logger.warning("Health check task failed", extra={"error": str(exc)})
    except TimeoutError:
        logger.warning("Health checks timed out", extra={"timeout": timeout})

    return {"database": db_result, "redis": redis_result}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running. No dependency checks.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    Checks the database and Redis in parallel. Returns 503 if either is
    unhealthy or the checks do not finish in time.
    """
    from minicrm.backend.core.config import get_app_config

    timeout = get_app_config().application.health_checks.ready_timeout_seconds
    checks = await _run_checks(timeout)

    unhealthy_checks = [
        name for name, check in checks.items()
        if check.get("status") in ("unhealthy", "error")
    ]

    if unhealthy_checks:
        logger.warning(
            "Readiness check failed",
            extra={"unhealthy": unhealthy_checks, "checks": checks},
        )
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health_check() -> dict[str, Any]:
    """Dependency checks plus application identity and enabled features."""
    from minicrm.backend.core.config import get_app_config

    checks = await _run_checks()

    app_config = get_app_config()
    app_settings = app_config.application
    app_info = {
        "name": app_settings.name,
        "env": app_settings.environment,
        "debug": app_settings.debug,
        "version": app_settings.version,
        "timezone": app_settings.timezone,
    }
    features = app_config.features.model_dump()

    statuses = [check.get("status") for check in checks.values()]
    overall_status = "unhealthy" if {"unhealthy", "error"} & set(statuses) else "healthy"

    return {
        "status": overall_status,
        "application": app_info,
        "features": features,
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
