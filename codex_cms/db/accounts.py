"""
SQLAlchemy-backed account store: users, roles and API keys.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import delete, func, select

from codex_cms.auth.api_key import generate_api_key, hash_api_key, looks_like_api_key
from codex_cms.auth.permissions import ApiKeyPermission, Role
from codex_cms.content.schemas import Pagination
from codex_cms.db.client import Database
from codex_cms.db.errors import storage_errors
from codex_cms.db.models import ApiKey, User
from codex_cms.kernel.time import coerce_utc, isoformat_z, utc_now

logger = structlog.get_logger()


def user_to_record(row: Any) -> dict[str, Any]:
    return {
        "id": row.id,
        "email": row.email,
        "name": row.name,
        "role": row.role,
        "createdAt": isoformat_z(row.created_at),
        "updatedAt": isoformat_z(row.updated_at),
    }


def api_key_to_record(row: Any) -> dict[str, Any]:
    # The hash never leaves the store.
    return {
        "id": row.id,
        "userId": row.user_id,
        "name": row.name,
        "keyPrefix": row.key_prefix,
        "permissionLevel": row.permission_level,
        "expiresAt": isoformat_z(row.expires_at),
        "lastUsedAt": isoformat_z(row.last_used_at),
        "createdAt": isoformat_z(row.created_at),
    }


class SqlAccountStore:
    def __init__(self, db: Database):
        self._db = db

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        async with storage_errors("get_user", user_id=user_id):
            async with self._db.session() as session:
                row = await session.get(User, user_id)
                return user_to_record(row) if row is not None else None

    async def list_users(self, pagination: Pagination) -> tuple[list[dict[str, Any]], int]:
        async with storage_errors("list_users"):
            async with self._db.session() as session:
                total = (await session.execute(select(func.count()).select_from(User))).scalar_one()
                result = await session.execute(
                    select(User)
                    .order_by(User.created_at, User.id)
                    .limit(pagination.limit)
                    .offset(pagination.offset)
                )
                return [user_to_record(row) for row in result.scalars().all()], int(total)

    async def count_owners(self) -> int:
        async with storage_errors("count_owners"):
            async with self._db.session() as session:
                result = await session.execute(
                    select(func.count()).select_from(User).where(User.role == Role.OWNER.value)
                )
                return int(result.scalar_one())

    async def set_user_role(self, user_id: str, role: Role) -> dict[str, Any] | None:
        async with storage_errors("set_user_role", user_id=user_id):
            async with self._db.session() as session:
                result = await session.execute(select(User).where(User.id == user_id).with_for_update())
                row = result.scalar_one_or_none()
                if row is None:
                    return None
                row.role = Role(role).value
                row.updated_at = utc_now()
                await session.flush()
                return user_to_record(row)

    async def create_api_key(
        self,
        user_id: str,
        *,
        name: str,
        permission_level: ApiKeyPermission,
        expires_at: datetime | None,
    ) -> tuple[str, dict[str, Any]]:
        """Create a key. The full key is returned here and never again."""
        full_key, key_prefix, key_hash = generate_api_key()
        async with storage_errors("create_api_key", user_id=user_id):
            async with self._db.session() as session:
                row = ApiKey(
                    user_id=user_id,
                    name=name,
                    key_prefix=key_prefix,
                    key_hash=key_hash,
                    permission_level=ApiKeyPermission(permission_level).value,
                    expires_at=expires_at,
                )
                session.add(row)
                await session.flush()
                record = api_key_to_record(row)

        logger.info(
            "Created API key",
            key_id=record["id"],
            user_id=user_id,
            key_prefix=key_prefix,
            permission_level=record["permissionLevel"],
        )
        return full_key, record

    async def list_api_keys(self, user_id: str) -> list[dict[str, Any]]:
        async with storage_errors("list_api_keys", user_id=user_id):
            async with self._db.session() as session:
                result = await session.execute(
                    select(ApiKey).where(ApiKey.user_id == user_id).order_by(ApiKey.created_at.desc(), ApiKey.id)
                )
                return [api_key_to_record(row) for row in result.scalars().all()]

    async def revoke_api_key(self, user_id: str, key_id: str) -> bool:
        async with storage_errors("revoke_api_key", user_id=user_id, key_id=key_id):
            async with self._db.session() as session:
                result = await session.execute(
                    delete(ApiKey).where(ApiKey.id == key_id, ApiKey.user_id == user_id)
                )
                return bool(result.rowcount)

    async def authenticate_api_key(self, raw_key: str, *, now: datetime) -> dict[str, Any] | None:
        """
        Resolve a presented key to its record, stamping `lastUsedAt`.

        Returns None for malformed, unknown or expired keys.
        """
        if not looks_like_api_key(raw_key):
            return None

        async with storage_errors("authenticate_api_key"):
            async with self._db.session() as session:
                result = await session.execute(select(ApiKey).where(ApiKey.key_hash == hash_api_key(raw_key)))
                row = result.scalar_one_or_none()
                if row is None:
                    logger.warning("API key not found", key_prefix=raw_key[:8])
                    return None
                if row.expires_at is not None and coerce_utc(row.expires_at) <= coerce_utc(now):
                    logger.info("API key expired", key_id=row.id)
                    return None

                row.last_used_at = now
                return api_key_to_record(row)
