"""
Integration Test Fixtures.

Fixtures for integration tests - the real API app against the test
database. These fixtures build on the root conftest.py database fixtures.
"""

import json
from collections.abc import AsyncGenerator, Callable
from typing import Any
from urllib.parse import urlencode

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.core.database import get_db_session


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
async def client(
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with database session override.

    The client uses the test database session, ensuring all API
    operations use the same session that gets rolled back after the test.
    The lifespan is not run: no reminder sweep and no bot.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    from minicrm.backend.main import create_app

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Identity Fixtures
# =============================================================================


def build_init_data(user_id: str, **extra: str) -> str:
    """Unsigned Telegram WebApp init data for ``user_id``."""
    fields = {"user": json.dumps({"id": int(user_id), "first_name": "Test"}), **extra}
    return urlencode(fields)


@pytest.fixture
def identity_headers() -> Callable[[str], dict[str, str]]:
    """
    Header factory: ``identity_headers(owner_id)`` -> init data header.

    Usage:
        response = await client.get("/api/v1/clients", headers=identity_headers(owner_id))
    """
    def _headers(owner_id: str) -> dict[str, str]:
        return {"X-Telegram-Init-Data": build_init_data(owner_id)}
    return _headers


@pytest.fixture
def auth_headers(identity_headers, owner_id) -> dict[str, str]:
    """Identity headers for the default test owner."""
    return identity_headers(owner_id)


@pytest.fixture
def other_headers(identity_headers, other_owner_id) -> dict[str, str]:
    """Identity headers for a second owner."""
    return identity_headers(other_owner_id)


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            The ``data`` member of the response envelope
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        body = response.json()
        assert body.get("success") is True, f"Response not successful: {body}"
        return body["data"]

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            The ``error`` member of the response envelope
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        body = response.json()
        assert body.get("success") is False, f"Response should be error: {body}"
        assert body.get("error") is not None, f"Missing error details: {body}"

        if expected_code:
            actual_code = body["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return body["error"]

    @staticmethod
    def assert_validation_error(response: Any, field: str | None = None) -> dict[str, Any]:
        """Assert a request validation error (422), optionally for ``field``."""
        error = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = error.get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return error


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()
