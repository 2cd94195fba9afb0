"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import json
import uuid
from typing import Annotated, Any

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.core.config import get_app_config, get_settings
from minicrm.backend.core.database import get_db_session
from minicrm.backend.core.logging import get_logger
from minicrm.backend.core.security import resolve_owner_id

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """Extract or generate request ID from headers."""
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def _json_body(request: Request) -> dict[str, Any] | None:
    """Parsed JSON object body, or None for empty or non-object bodies."""
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        body = json.loads(raw)
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


async def get_owner_id(
    request: Request,
    x_telegram_init_data: str | None = Header(None),
) -> str:
    """
    Resolve the calling owner from Telegram init data.

    Raises:
        AuthenticationError: If the request carries no identity
    """
    app_config = get_app_config()
    verify = app_config.features.auth_verify_init_data
    owner_id = resolve_owner_id(
        x_telegram_init_data,
        await _json_body(request),
        verify=verify,
        bot_token=get_settings().telegram_bot_token if verify else "",
        max_age_seconds=app_config.reminders.init_data_max_age_seconds,
    )
    request.state.owner_id = owner_id
    structlog.contextvars.bind_contextvars(owner_id=owner_id)
    return owner_id


OwnerId = Annotated[str, Depends(get_owner_id)]
