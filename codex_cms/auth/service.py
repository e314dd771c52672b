"""
User and API key management.

Runs the same authorize -> validate -> business rules -> mutate -> shape
stages as the content pipeline. API keys are managed by their owning user
through a session; an API key can never mint or revoke keys.
"""

from __future__ import annotations

from typing import Any, Mapping

import structlog

from codex_cms.auth.context import Principal
from codex_cms.auth.guards import AccessPolicy, authorize
from codex_cms.auth.permissions import ApiKeyPermission, Capability, Role, is_owner
from codex_cms.auth.schemas import ApiKeyCreateInput, RoleChangeInput
from codex_cms.content.ports import AccountStore
from codex_cms.content.pipeline import admin_pagination
from codex_cms.content.validation import (
    FieldViolation,
    ValidationResult,
    parse_model,
    require_valid,
    validate_pagination,
)
from codex_cms.kernel.errors import AuthorizationDenied, Conflict, NotFound
from codex_cms.kernel.time import Clock, coerce_utc, utc_now

logger = structlog.get_logger()

USERS_VIEW = AccessPolicy(Capability.USERS_VIEW, ApiKeyPermission.ADMIN)
USERS_EDIT = AccessPolicy(Capability.USERS_EDIT, ApiKeyPermission.ADMIN)
# Any signed-in role manages its own keys; API keys never do.
API_KEYS_MANAGE = AccessPolicy(Capability.CONTENT_VIEW, None)


class AccountService:
    def __init__(self, store: AccountStore, *, clock: Clock = utc_now, page_size: int = 50):
        self._store = store
        self._clock = clock
        self._page_size = page_size

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def list_users(self, principal: Principal | None, params: Mapping[str, Any]) -> dict[str, Any]:
        authorize(principal, USERS_VIEW)
        pagination = require_valid(validate_pagination(params, default_limit=self._page_size))
        users, total = await self._store.list_users(pagination)
        return {"data": users, "pagination": admin_pagination(pagination, total)}

    async def change_role(self, principal: Principal | None, user_id: str, body: Any) -> dict[str, Any]:
        """
        Set a user's role.

        Only an OWNER may grant OWNER or change an OWNER's role, and the last
        OWNER cannot be demoted.
        """
        principal = authorize(principal, USERS_EDIT)
        payload: RoleChangeInput = require_valid(parse_model(RoleChangeInput, body))

        target = await self._store.get_user(user_id)
        if target is None:
            raise NotFound(message="User not found", meta={"id": user_id})

        touches_owner = payload.role is Role.OWNER or is_owner(target["role"])
        if touches_owner and not (principal.is_session and is_owner(principal.role)):
            raise AuthorizationDenied(message="Only an owner can grant or revoke the owner role")
        if is_owner(target["role"]) and payload.role is not Role.OWNER:
            if await self._store.count_owners() <= 1:
                raise Conflict(message="Cannot remove the last owner")

        updated = await self._store.set_user_role(user_id, payload.role)
        if updated is None:
            raise NotFound(message="User not found", meta={"id": user_id})
        logger.info(
            "User role changed",
            principal=principal.subject_id,
            user_id=user_id,
            previous_role=target["role"],
            role=payload.role.value,
        )
        return {"data": updated}

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------

    async def create_api_key(self, principal: Principal | None, body: Any) -> dict[str, Any]:
        principal = authorize(principal, API_KEYS_MANAGE)
        payload: ApiKeyCreateInput = require_valid(parse_model(ApiKeyCreateInput, body))
        if payload.expires_at is not None and coerce_utc(payload.expires_at) <= coerce_utc(self._clock()):
            require_valid(
                ValidationResult.failure(
                    [FieldViolation(field="expiresAt", message="expiresAt must be in the future", code="out_of_range")]
                )
            )

        full_key, record = await self._store.create_api_key(
            principal.user_id,
            name=payload.name,
            permission_level=payload.permission_level,
            expires_at=coerce_utc(payload.expires_at) if payload.expires_at else None,
        )
        # The full key is returned once and cannot be recovered later.
        return {"data": {**record, "key": full_key}}

    async def list_api_keys(self, principal: Principal | None) -> dict[str, Any]:
        principal = authorize(principal, API_KEYS_MANAGE)
        return {"data": await self._store.list_api_keys(principal.user_id)}

    async def revoke_api_key(self, principal: Principal | None, key_id: str) -> dict[str, Any]:
        principal = authorize(principal, API_KEYS_MANAGE)
        if not await self._store.revoke_api_key(principal.user_id, key_id):
            raise NotFound(message="API key not found", meta={"id": key_id})
        logger.info("Revoked API key", principal=principal.subject_id, key_id=key_id)
        return {"data": {"id": key_id, "message": "API key revoked"}}
