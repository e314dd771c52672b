"""
FastAPI authentication dependency for the content API.

Resolves the caller to a `Principal` or None:
1. API key (X-API-Key header, or `Authorization: Bearer codex_...`)
2. Session token (`Authorization: Bearer <jwt>`, HS256, minted by the admin
   sign-in flow)

A missing credential resolves to None and the pipeline decides whether the
operation needs one. A credential that is present but invalid, expired or
revoked is rejected here with AuthenticationRequired.
"""

from __future__ import annotations

from datetime import datetime

import jwt
import structlog
from fastapi import Depends, Header, Request
from fastapi.security import APIKeyHeader

from codex_cms.api.deps import get_account_store, get_app_settings, get_clock
from codex_cms.auth.api_key import KEY_PREFIX
from codex_cms.auth.context import Principal
from codex_cms.auth.permissions import ApiKeyPermission, parse_role
from codex_cms.config import Settings
from codex_cms.content.ports import AccountStore
from codex_cms.kernel.errors import AuthenticationRequired
from codex_cms.kernel.time import Clock

logger = structlog.get_logger()

API_KEY_HEADER = "X-API-Key"
JWT_ALGORITHM = "HS256"

# Security scheme for OpenAPI docs
api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def verify_session_token(token: str, secret: str) -> dict | None:
    """Verify and decode a session JWT. Returns the claims or None."""
    if not secret:
        logger.warning("No session secret configured, rejecting session token")
        return None
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug("Invalid session token", error=str(e))
        return None
    return claims


async def authenticate_api_key(accounts: AccountStore, raw_key: str, *, now: datetime) -> Principal:
    key = await accounts.authenticate_api_key(raw_key, now=now)
    if key is None:
        raise AuthenticationRequired(message="Invalid or expired API key")
    try:
        level = ApiKeyPermission(key["permissionLevel"])
    except ValueError:
        logger.warning("API key carries unknown permission level", key_id=key["id"])
        raise AuthenticationRequired(message="Invalid or expired API key")

    return Principal.api_key(user_id=key["userId"], permission_level=level, key_id=key["id"])


async def authenticate_session(accounts: AccountStore, token: str, *, secret: str) -> Principal:
    claims = verify_session_token(token, secret)
    if claims is None:
        raise AuthenticationRequired(message="Invalid or expired session")

    # The role claim is ignored: role changes must apply without a new token.
    user = await accounts.get_user(str(claims["sub"]))
    role = parse_role(user["role"]) if user else None
    if user is None or role is None:
        raise AuthenticationRequired(message="Invalid or expired session")

    return Principal.session(user_id=user["id"], role=role, email=user.get("email"))


async def get_principal(
    request: Request,
    api_key: str | None = Depends(api_key_header),
    authorization: str | None = Header(default=None),
    accounts: AccountStore = Depends(get_account_store),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> Principal | None:
    """
    Resolve the caller, or None when no credential was presented.

    Usage:
        @router.get("/pages")
        async def list_pages(principal: Principal | None = Depends(get_principal)):
            ...
    """
    api_key = api_key if isinstance(api_key, str) else None
    authorization = authorization if isinstance(authorization, str) else None

    bearer: str | None = None
    if authorization and authorization.lower().startswith("bearer "):
        bearer = authorization[7:].strip() or None

    if api_key:
        principal = await authenticate_api_key(accounts, api_key, now=clock())
    elif bearer and bearer.startswith(KEY_PREFIX):
        principal = await authenticate_api_key(accounts, bearer, now=clock())
    elif bearer:
        principal = await authenticate_session(accounts, bearer, secret=settings.session_jwt_secret)
    else:
        return None

    request.state.principal = principal
    logger.debug("Principal resolved", **principal.to_audit_log())
    structlog.contextvars.bind_contextvars(principal=principal.subject_id)
    return principal
