"""Presentations API tests over an in-memory database."""

import pytest
import pytest_asyncio
import httpx

from deckpad.core import dependencies
from deckpad.main import create_app


@pytest_asyncio.fixture
async def client(database):
    dependencies.database = database
    app = create_app()
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    dependencies.database = None


@pytest.fixture
def save_body(sample_outline):
    return {"title": "Photosynthesis", "outline": sample_outline.to_wire()}


class TestSavePresentation:
    @pytest.mark.asyncio
    async def test_requires_authorization(self, client, save_body):
        response = await client.post("/api/presentations", json=save_body)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_expired_token(self, client, save_body, expired_jwt_token):
        response = await client.post(
            "/api/presentations",
            json=save_body,
            headers={"Authorization": f"Bearer {expired_jwt_token}"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_non_bearer_header(self, client, save_body, jwt_token):
        response = await client.post(
            "/api/presentations",
            json=save_body,
            headers={"Authorization": f"Token {jwt_token}"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_insert_then_update(
        self, client, save_body, auth_headers, test_user_id, sample_outline
    ):
        first = await client.post(
            "/api/presentations", json=save_body, headers=auth_headers
        )
        second = await client.post(
            "/api/presentations", json=save_body, headers=auth_headers
        )

        assert first.status_code == 200
        assert second.status_code == 200
        created, updated = first.json(), second.json()
        assert set(created) == {
            "id",
            "user_id",
            "title",
            "version",
            "outline_json",
            "created_at",
            "updated_at",
        }
        assert created["user_id"] == test_user_id
        assert created["version"] == 1
        assert updated["id"] == created["id"]
        assert updated["version"] == 2
        assert updated["outline_json"] == sample_outline.to_wire()

    @pytest.mark.asyncio
    async def test_blank_title_after_trim(self, client, sample_outline, auth_headers):
        response = await client.post(
            "/api/presentations",
            json={"title": "   ", "outline": sample_outline.to_wire()},
            headers=auth_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_outline(self, client, auth_headers):
        response = await client.post(
            "/api/presentations",
            json={"title": "Deck", "outline": {"slides": []}},
            headers=auth_headers,
        )

        assert response.status_code == 422


class TestListAndDelete:
    @pytest.mark.asyncio
    async def test_list_only_own_records(
        self, client, save_body, auth_headers, another_auth_headers
    ):
        await client.post("/api/presentations", json=save_body, headers=auth_headers)
        await client.post(
            "/api/presentations",
            json={**save_body, "title": "Theirs"},
            headers=another_auth_headers,
        )

        response = await client.get("/api/presentations", headers=auth_headers)

        assert response.status_code == 200
        assert [r["title"] for r in response.json()] == ["Photosynthesis"]

    @pytest.mark.asyncio
    async def test_delete_lifecycle(
        self, client, save_body, auth_headers, another_auth_headers
    ):
        created = (
            await client.post("/api/presentations", json=save_body, headers=auth_headers)
        ).json()

        forbidden = await client.delete(
            f"/api/presentations/{created['id']}", headers=another_auth_headers
        )
        deleted = await client.delete(
            f"/api/presentations/{created['id']}", headers=auth_headers
        )
        missing = await client.delete(
            f"/api/presentations/{created['id']}", headers=auth_headers
        )

        assert forbidden.status_code == 403
        assert deleted.status_code == 204
        assert missing.status_code == 404


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_database(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"] == {"database": True}
