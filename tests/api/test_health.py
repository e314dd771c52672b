"""
API tests for health, root and middleware behaviour.
"""

import pytest

pytestmark = pytest.mark.api


class TestHealth:
    async def test_health(self, async_client):
        response = await async_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_live(self, async_client):
        response = await async_client.get("/live")
        assert response.json() == {"status": "alive"}

    async def test_ready_without_database(self, async_client):
        response = await async_client.get("/ready")
        assert response.status_code == 503
        assert response.json()["checks"]["postgres"] is False

    async def test_root(self, async_client):
        response = await async_client.get("/")
        assert response.json()["name"] == "Codex CMS API"


class TestMiddleware:
    async def test_request_id_is_echoed(self, async_client):
        response = await async_client.get("/health", headers={"X-Request-ID": "req_abc"})
        assert response.headers["X-Request-ID"] == "req_abc"

    async def test_request_id_is_generated(self, async_client):
        response = await async_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 16

    async def test_security_headers(self, async_client):
        response = await async_client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    async def test_error_bodies_carry_request_id(self, async_client):
        response = await async_client.get("/api/v1/pages", headers={"X-Request-ID": "req_401"})
        assert response.status_code == 401
        assert response.json()["request_id"] == "req_401"
