"""
Security Utilities.

Caller identity for the mini-app API. The Telegram client hands the web app
an ``initData`` query string; its ``user`` field carries the Telegram user,
whose ``id`` is the owner of every client, note and reminder.

Signature verification follows Telegram's WebApp scheme and is optional
(``features.auth_verify_init_data``). With it off only the structure of
the init data is checked.
"""

import hashlib
import hmac
import json
import time
from typing import Any
from urllib.parse import parse_qsl

from minicrm.backend.core.exceptions import AuthenticationError
from minicrm.backend.core.logging import get_logger

logger = get_logger(__name__)

INIT_DATA_HEADER = "x-telegram-init-data"
WEBAPP_SECRET_KEY = b"WebAppData"


def parse_init_data(raw: str) -> dict[str, str]:
    """Split an init data query string into its fields."""
    return dict(parse_qsl(raw, keep_blank_values=True))


def owner_id_from_fields(fields: dict[str, str]) -> str | None:
    """
    Extract the Telegram user id from parsed init data.

    Returns None when the ``user`` field is missing, is not a JSON object,
    or has no usable ``id``.
    """
    raw_user = fields.get("user")
    if not raw_user:
        return None
    try:
        user = json.loads(raw_user)
    except (TypeError, ValueError):
        return None
    if not isinstance(user, dict):
        return None
    user_id = user.get("id")
    if user_id is None or isinstance(user_id, bool):
        return None
    owner_id = str(user_id).strip()
    return owner_id or None


def compute_init_data_hash(fields: dict[str, str], bot_token: str) -> str:
    """Compute the WebApp signature for the given fields."""
    data_check_string = "\n".join(
        f"{key}={value}" for key, value in sorted(fields.items()) if key != "hash"
    )
    secret_key = hmac.new(WEBAPP_SECRET_KEY, bot_token.encode(), hashlib.sha256).digest()
    return hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()


def verify_init_data(
    fields: dict[str, str],
    bot_token: str,
    max_age_seconds: int,
    now: float | None = None,
) -> None:
    """
    Verify the signature and freshness of parsed init data.

    Raises:
        AuthenticationError: If the hash is missing or wrong, or auth_date is stale
    """
    if not bot_token:
        raise AuthenticationError("Init data verification is not configured")

    received = fields.get("hash", "")
    expected = compute_init_data_hash(fields, bot_token)
    if not received or not hmac.compare_digest(received, expected):
        logger.warning("Init data signature mismatch")
        raise AuthenticationError("Invalid init data signature")

    if max_age_seconds > 0:
        try:
            auth_date = int(fields.get("auth_date", ""))
        except ValueError as e:
            raise AuthenticationError("Init data has no auth_date") from e
        current = time.time() if now is None else now
        if current - auth_date > max_age_seconds:
            raise AuthenticationError("Init data has expired")


def resolve_owner_id(
    init_data: str | None = None,
    body: dict[str, Any] | None = None,
    *,
    verify: bool = False,
    bot_token: str = "",
    max_age_seconds: int = 0,
) -> str:
    """
    Resolve the owner id for a request.

    Identity sources, first match wins:
        1. ``X-Telegram-Init-Data`` header
        2. ``initData`` field of the JSON body
        3. ``user_id`` field of the JSON body (only when verification is off)

    Args:
        init_data: Raw header value
        body: Parsed JSON body, if the request had one
        verify: Require a valid WebApp signature
        bot_token: Telegram bot token used as the signing key
        max_age_seconds: Maximum accepted age of auth_date (0 disables)

    Returns:
        The owner id as a string

    Raises:
        AuthenticationError: If no identity material is present
    """
    body = body if isinstance(body, dict) else {}
    candidates = [init_data, body.get("initData")]

    for raw in candidates:
        if not raw or not isinstance(raw, str):
            continue
        fields = parse_init_data(raw)
        owner_id = owner_id_from_fields(fields)
        if owner_id is None:
            continue
        if verify:
            verify_init_data(fields, bot_token, max_age_seconds)
        return owner_id

    if not verify:
        user_id = body.get("user_id")
        if user_id is not None and not isinstance(user_id, bool):
            owner_id = str(user_id).strip()
            if owner_id:
                return owner_id

    raise AuthenticationError("Unauthorized: no Telegram user data")
