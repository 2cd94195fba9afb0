"""
Request Context Middleware.

Request tracking, timing, frontend identification and log context.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from minicrm.backend.core.logging import get_logger
from minicrm.backend.core.security import INIT_DATA_HEADER

logger = get_logger(__name__)

# Frontend identifiers accepted in X-Frontend-ID
KNOWN_FRONTENDS = {"web", "telegram", "cli", "api", "internal"}


def _detect_frontend(request: Request) -> str:
    """Frontend from X-Frontend-ID, or 'telegram' when init data is attached."""
    frontend = request.headers.get("X-Frontend-ID", "").lower()
    if frontend in KNOWN_FRONTENDS:
        return frontend
    if request.headers.get(INIT_DATA_HEADER):
        return "telegram"
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds request context to every request.

    - Generates or propagates the request ID (X-Request-ID header)
    - Identifies the calling frontend (X-Frontend-ID header, or the mini-app
      when Telegram init data is present)
    - Reports request duration (X-Response-Time header)
    - Binds request_id, frontend, method and path to structlog; the owner
      dependency adds owner_id once the caller is identified

    Access in endpoints:
        request.state.request_id
        request.state.frontend
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        frontend = _detect_frontend(request)
        started = time.perf_counter()

        request.state.request_id = request_id
        request.state.frontend = frontend

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            frontend=frontend,
            method=request.method,
            path=request.url.path,
        )

        logger.debug(
            "Request started",
            extra={"client_host": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = int((time.perf_counter() - started) * 1000)
            logger.error(
                "Request failed with exception",
                extra={"duration_ms": duration_ms, "error_type": type(exc).__name__},
            )
            raise
        else:
            duration_ms = int((time.perf_counter() - started) * 1000)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            logger.debug(
                "Request completed",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()
