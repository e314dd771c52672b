"""
API tests for the admin content endpoints.
"""

import pytest

from codex_cms.auth import ApiKeyPermission, Role

pytestmark = pytest.mark.api


@pytest.fixture
def headers_for(account_store, session_token):
    """Build Authorization headers for a fresh user with `role`."""

    def _headers(role: Role) -> dict[str, str]:
        user = account_store.add_user(role)
        return {"Authorization": f"Bearer {session_token(user['id'])}"}

    return _headers


@pytest.fixture
def editor_headers(headers_for):
    return headers_for(Role.EDITOR)


@pytest.fixture
def admin_headers(headers_for):
    return headers_for(Role.ADMIN)


PAGE = {"title": "About", "slug": "about", "locale": "en"}


class TestAuthentication:
    async def test_missing_credentials(self, async_client, content_store):
        response = await async_client.post("/api/v1/services", json={"name": "Audits", "slug": "audits", "locale": "en"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["code"] == "auth.unauthenticated"
        assert content_store.calls == []

    async def test_bad_token(self, async_client):
        response = await async_client.get("/api/v1/pages", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_malformed_json_is_rejected_after_authentication(self, async_client, editor_headers):
        unauthenticated = await async_client.post(
            "/api/v1/pages", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert unauthenticated.status_code == 401

        response = await async_client.post(
            "/api/v1/pages",
            content=b"{not json",
            headers={**editor_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 422
        assert response.json()["meta"]["errors"][0]["field"] == "body"

    async def test_api_key_header(self, async_client, account_store):
        full_key, _ = account_store.add_api_key("usr_integration", ApiKeyPermission.READ)

        listed = await async_client.get("/api/v1/pages", headers={"X-API-Key": full_key})
        assert listed.status_code == 200

        denied = await async_client.post("/api/v1/pages", json=PAGE, headers={"X-API-Key": full_key})
        assert denied.status_code == 403
        assert denied.json()["code"] == "auth.forbidden"


class TestPagesCrud:
    async def test_create_get_update_delete(self, async_client, editor_headers, admin_headers):
        created = await async_client.post(
            "/api/v1/pages",
            json={**PAGE, "blocks": [{"type": "hero", "headline": "Hi"}, {"type": "faq"}]},
            headers=editor_headers,
        )
        assert created.status_code == 201
        page = created.json()["data"]
        assert [block["order"] for block in page["blocks"]] == [0, 1]

        fetched = await async_client.get(f"/api/v1/pages/{page['id']}", headers=editor_headers)
        assert fetched.json()["data"]["title"] == "About"

        updated = await async_client.put(
            f"/api/v1/pages/{page['id']}",
            json={**PAGE, "title": "About us", "blocks": [{"type": "richText", "content": "<p>x</p>"}]},
            headers=editor_headers,
        )
        assert updated.status_code == 200
        assert len(updated.json()["data"]["blocks"]) == 1

        forbidden = await async_client.delete(f"/api/v1/pages/{page['id']}", headers=editor_headers)
        assert forbidden.status_code == 403

        deleted = await async_client.delete(f"/api/v1/pages/{page['id']}", headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.json()["data"]["id"] == page["id"]

        gone = await async_client.get(f"/api/v1/pages/{page['id']}", headers=editor_headers)
        assert gone.status_code == 404

    async def test_slug_conflict_per_locale(self, async_client, editor_headers):
        assert (await async_client.post("/api/v1/pages", json=PAGE, headers=editor_headers)).status_code == 201

        duplicate = await async_client.post("/api/v1/pages", json=PAGE, headers=editor_headers)
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "resource.conflict"

        german = await async_client.post("/api/v1/pages", json={**PAGE, "locale": "de"}, headers=editor_headers)
        assert german.status_code == 201

    async def test_validation_errors(self, async_client, editor_headers):
        response = await async_client.post(
            "/api/v1/blog-posts", json={"title": "", "slug": "Bad Slug", "locale": "en"}, headers=editor_headers
        )
        assert response.status_code == 422
        fields = {error["field"] for error in response.json()["meta"]["errors"]}
        assert {"title", "slug"} <= fields

    async def test_list_with_pagination(self, async_client, editor_headers):
        for slug in ("a", "b", "c"):
            await async_client.post("/api/v1/case-studies", json={**PAGE, "slug": slug}, headers=editor_headers)

        response = await async_client.get("/api/v1/case-studies?limit=2&offset=2", headers=editor_headers)

        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"total": 3, "limit": 2, "offset": 2, "hasMore": False}

    async def test_replace_blocks_endpoint(self, async_client, editor_headers):
        page = (await async_client.post("/api/v1/pages", json=PAGE, headers=editor_headers)).json()["data"]

        response = await async_client.put(
            f"/api/v1/pages/{page['id']}/blocks",
            json={"blocks": [{"type": "hero", "order": 4}, {"type": "faq", "order": 2}]},
            headers=editor_headers,
        )

        assert response.status_code == 200
        assert [(b["type"], b["order"]) for b in response.json()["data"]] == [("faq", 2), ("hero", 4)]

    async def test_services_have_no_blocks_route(self, async_client, editor_headers):
        response = await async_client.put("/api/v1/services/svc_1/blocks", json={"blocks": []}, headers=editor_headers)
        assert response.status_code in (404, 405)


class TestBlocksApi:
    async def test_block_lifecycle(self, async_client, editor_headers):
        page = (await async_client.post("/api/v1/pages", json=PAGE, headers=editor_headers)).json()["data"]

        created = await async_client.post(
            "/api/v1/blocks", json={"type": "hero", "pageId": page["id"], "headline": "Hi"}, headers=editor_headers
        )
        assert created.status_code == 201
        block = created.json()["data"]

        updated = await async_client.put(
            f"/api/v1/blocks/{block['id']}", json={"type": "hero", "headline": "Hello"}, headers=editor_headers
        )
        assert updated.json()["data"]["data"]["headline"] == "Hello"

        deleted = await async_client.delete(f"/api/v1/blocks/{block['id']}", headers=editor_headers)
        assert deleted.status_code == 200
        assert (await async_client.get(f"/api/v1/blocks/{block['id']}", headers=editor_headers)).status_code == 404

    async def test_two_parents_is_unprocessable(self, async_client, editor_headers):
        response = await async_client.post(
            "/api/v1/blocks", json={"type": "hero", "pageId": "pg_1", "caseId": "case_1"}, headers=editor_headers
        )
        assert response.status_code == 422
