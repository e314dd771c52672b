"""
Unit tests for credential resolution.
"""

from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from codex_cms.auth import ApiKeyPermission, AuthType, Role
from codex_cms.auth.middleware import get_principal, verify_session_token
from codex_cms.config import Settings
from codex_cms.kernel.errors import AuthenticationRequired

pytestmark = pytest.mark.unit

SECRET = "test-session-secret"


@pytest.fixture
def settings():
    return Settings(environment="test", session_jwt_secret=SECRET)


def _request():
    return SimpleNamespace(state=SimpleNamespace())


async def _resolve(accounts, settings, clock, *, api_key=None, authorization=None):
    return await get_principal(
        _request(),
        api_key=api_key,
        authorization=authorization,
        accounts=accounts,
        settings=settings,
        clock=clock,
    )


class TestVerifySessionToken:
    def test_valid_token(self, session_token):
        claims = verify_session_token(session_token("usr_1"), SECRET)
        assert claims["sub"] == "usr_1"

    def test_wrong_secret(self, session_token):
        assert verify_session_token(session_token("usr_1", secret="other"), SECRET) is None

    def test_expired_token(self, session_token):
        assert verify_session_token(session_token("usr_1", expires_in=timedelta(seconds=-5)), SECRET) is None

    def test_missing_exp_claim(self):
        token = jwt.encode({"sub": "usr_1"}, SECRET, algorithm="HS256")
        assert verify_session_token(token, SECRET) is None

    def test_empty_secret_rejects_everything(self, session_token):
        assert verify_session_token(session_token("usr_1", secret=""), "") is None


class TestGetPrincipal:
    async def test_no_credentials_resolve_to_none(self, account_store, settings, fake_clock):
        assert await _resolve(account_store, settings, fake_clock) is None

    async def test_session_role_is_read_from_the_store(self, account_store, settings, fake_clock):
        account_store.add_user(Role.EDITOR, user_id="usr_ed")
        token = jwt.encode(
            {"sub": "usr_ed", "role": "OWNER", "exp": fake_clock() + timedelta(days=3650)},
            SECRET,
            algorithm="HS256",
        )

        principal = await _resolve(account_store, settings, fake_clock, authorization=f"Bearer {token}")

        assert principal.auth_type is AuthType.SESSION
        assert principal.role is Role.EDITOR

    async def test_session_for_unknown_user_is_rejected(self, account_store, settings, fake_clock, session_token):
        with pytest.raises(AuthenticationRequired):
            await _resolve(account_store, settings, fake_clock, authorization=f"Bearer {session_token('usr_gone')}")

    async def test_invalid_session_token_is_rejected(self, account_store, settings, fake_clock):
        with pytest.raises(AuthenticationRequired):
            await _resolve(account_store, settings, fake_clock, authorization="Bearer not-a-jwt")

    async def test_api_key_header(self, account_store, settings, fake_clock):
        account_store.add_user(Role.ADMIN, user_id="usr_admin")
        full_key, record = account_store.add_api_key("usr_admin", ApiKeyPermission.WRITE)

        principal = await _resolve(account_store, settings, fake_clock, api_key=full_key)

        assert principal.auth_type is AuthType.API_KEY
        assert principal.permission_level is ApiKeyPermission.WRITE
        assert principal.key_id == record["id"]
        assert principal.role is None

    async def test_api_key_as_bearer_token(self, account_store, settings, fake_clock):
        full_key, _ = account_store.add_api_key("usr_admin", ApiKeyPermission.READ)

        principal = await _resolve(account_store, settings, fake_clock, authorization=f"Bearer {full_key}")

        assert principal.permission_level is ApiKeyPermission.READ

    async def test_api_key_use_is_stamped(self, account_store, settings, fake_clock):
        full_key, record = account_store.add_api_key("usr_admin", ApiKeyPermission.READ)

        await _resolve(account_store, settings, fake_clock, api_key=full_key)

        (listed,) = await account_store.list_api_keys("usr_admin")
        assert listed["lastUsedAt"] == "2026-01-01T00:00:00Z"

    async def test_expired_api_key_is_rejected(self, account_store, settings, fake_clock):
        full_key, _ = account_store.add_api_key(
            "usr_admin", ApiKeyPermission.ADMIN, expires_at=fake_clock() - timedelta(seconds=1)
        )
        with pytest.raises(AuthenticationRequired):
            await _resolve(account_store, settings, fake_clock, api_key=full_key)

    async def test_unknown_api_key_is_rejected(self, account_store, settings, fake_clock):
        with pytest.raises(AuthenticationRequired):
            await _resolve(account_store, settings, fake_clock, api_key="codex_doesnotexist")
