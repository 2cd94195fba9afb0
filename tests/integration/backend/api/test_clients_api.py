"""
Integration Tests for Clients API.

Tests the clients API endpoints with a real database.
"""

import pytest
from httpx import AsyncClient


@pytest.fixture
def create_client(client: AsyncClient, api, auth_headers):
    async def _create(**fields) -> dict:
        response = await client.post("/api/v1/clients", json=fields, headers=auth_headers)
        return api.assert_success(response, expected_status=201)
    return _create


class TestCreateClient:
    """Tests for POST /api/v1/clients."""

    @pytest.mark.asyncio
    async def test_create_client_success(self, create_client, owner_id):
        data = await create_client(name="  Ion Popescu ", company="Acme", email="")

        assert data["name"] == "Ion Popescu"
        assert data["company"] == "Acme"
        assert data["email"] is None
        assert data["ownerId"] == owner_id
        assert "createdAt" in data
        assert "updatedAt" in data
        assert "owner_id" not in data

    @pytest.mark.asyncio
    async def test_phone_is_normalized(self, create_client):
        data = await create_client(name="Ion", phone="069123456")

        assert data["phone"].startswith("+373")

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, client: AsyncClient, api, auth_headers):
        response = await client.post("/api/v1/clients", json={"name": "   "}, headers=auth_headers)

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_overlong_name_is_422(self, client: AsyncClient, api, auth_headers):
        response = await client.post(
            "/api/v1/clients", json={"name": "x" * 300}, headers=auth_headers
        )

        api.assert_validation_error(response, field="name")


class TestListClients:
    """Tests for GET /api/v1/clients."""

    @pytest.mark.asyncio
    async def test_search_matches_any_field(self, client: AsyncClient, api, auth_headers, create_client):
        await create_client(name="Ion", company="Acme Corp")
        await create_client(name="Maria", email="maria@acme.md")
        await create_client(name="Vasile")

        response = await client.get(
            "/api/v1/clients", params={"search": "ACME"}, headers=auth_headers
        )

        names = sorted(c["name"] for c in api.assert_success(response))
        assert names == ["Ion", "Maria"]

    @pytest.mark.asyncio
    async def test_empty_list(self, client: AsyncClient, api, auth_headers):
        response = await client.get("/api/v1/clients", headers=auth_headers)

        assert api.assert_success(response) == []


class TestUpdateClient:
    """Tests for PATCH/PUT /api/v1/clients/{id}."""

    @pytest.mark.asyncio
    async def test_partial_update(self, client: AsyncClient, api, auth_headers, create_client):
        created = await create_client(name="Ion", company="Acme")

        response = await client.patch(
            f"/api/v1/clients/{created['id']}",
            json={"company": "Globex"},
            headers=auth_headers,
        )

        data = api.assert_success(response)
        assert data["name"] == "Ion"
        assert data["company"] == "Globex"

    @pytest.mark.asyncio
    async def test_put_is_accepted(self, client: AsyncClient, api, auth_headers, create_client):
        created = await create_client(name="Ion")

        response = await client.put(
            f"/api/v1/clients/{created['id']}", json={"name": "Ion P."}, headers=auth_headers
        )

        assert api.assert_success(response)["name"] == "Ion P."

    @pytest.mark.asyncio
    async def test_unknown_client_is_404(self, client: AsyncClient, api, auth_headers):
        response = await client.patch(
            "/api/v1/clients/missing", json={"name": "x"}, headers=auth_headers
        )

        api.assert_error(response, 404, "RES_NOT_FOUND")


class TestDeleteClient:
    """Tests for DELETE /api/v1/clients/{id}."""

    @pytest.mark.asyncio
    async def test_delete_cascades_to_notes_and_reminders(
        self, client: AsyncClient, api, auth_headers, create_client
    ):
        acme = await create_client(name="Acme")
        other = await create_client(name="Other")
        for text in ("first", "second"):
            await client.post(
                "/api/v1/notes", json={"text": text, "clientId": acme["id"]}, headers=auth_headers
            )
        await client.post(
            "/api/v1/notes", json={"text": "kept", "clientId": other["id"]}, headers=auth_headers
        )
        await client.post(
            "/api/v1/reminders",
            json={"text": "call", "clientId": acme["id"], "date": "2099-01-01"},
            headers=auth_headers,
        )

        response = await client.delete(f"/api/v1/clients/{acme['id']}", headers=auth_headers)

        data = api.assert_success(response)
        assert data == {"id": acme["id"], "notesDeleted": 2, "remindersDeleted": 1}

        notes = api.assert_success(await client.get("/api/v1/notes", headers=auth_headers))
        assert [n["text"] for n in notes] == ["kept"]
        api.assert_error(
            await client.get(f"/api/v1/clients/{acme['id']}", headers=auth_headers), 404
        )
