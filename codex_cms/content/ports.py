"""
Store interfaces the content pipeline depends on.

The pipeline receives an implementation at construction time; the process
wires the SQLAlchemy-backed stores, tests wire in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence

from codex_cms.auth.permissions import ApiKeyPermission, Role
from codex_cms.content.composition import BlockParent
from codex_cms.content.schemas import BlockDescriptor, Pagination
from codex_cms.content.types import EntityKind, Locale, PublishStatus

Record = dict[str, Any]


class ContentStore(Protocol):
    async def get_entity(self, kind: EntityKind, entity_id: str) -> Record | None: ...

    async def find_slug_owner(self, kind: EntityKind, slug: str, locale: Locale) -> str | None: ...

    async def user_exists(self, user_id: str) -> bool: ...

    async def parent_exists(self, parent: BlockParent) -> bool: ...

    async def create_entity(
        self,
        kind: EntityKind,
        values: dict[str, Any],
        *,
        blocks: Sequence[BlockDescriptor] | None,
        editor_id: str | None,
    ) -> Record: ...

    async def update_entity(
        self,
        kind: EntityKind,
        entity_id: str,
        values: dict[str, Any],
        *,
        blocks: Sequence[BlockDescriptor] | None,
        editor_id: str | None,
    ) -> Record | None: ...

    async def delete_entity(self, kind: EntityKind, entity_id: str) -> bool: ...

    async def list_entities(
        self,
        kind: EntityKind,
        pagination: Pagination,
        *,
        locale: Locale | None = None,
        status: PublishStatus | None = None,
        slug: str | None = None,
    ) -> tuple[list[Record], int]: ...

    async def replace_blocks(
        self,
        parent: BlockParent,
        descriptors: Sequence[BlockDescriptor],
        *,
        use_explicit_order: bool = False,
    ) -> list[Record]: ...

    async def get_block(self, block_id: str) -> Record | None: ...

    async def create_block(self, parent: BlockParent, descriptor: BlockDescriptor) -> Record: ...

    async def update_block(self, block_id: str, descriptor: BlockDescriptor) -> Record | None: ...

    async def delete_block(self, block_id: str) -> bool: ...


class AccountStore(Protocol):
    async def get_user(self, user_id: str) -> Record | None: ...

    async def list_users(self, pagination: Pagination) -> tuple[list[Record], int]: ...

    async def count_owners(self) -> int: ...

    async def set_user_role(self, user_id: str, role: Role) -> Record | None: ...

    async def create_api_key(
        self,
        user_id: str,
        *,
        name: str,
        permission_level: ApiKeyPermission,
        expires_at: datetime | None,
    ) -> tuple[str, Record]: ...

    async def list_api_keys(self, user_id: str) -> list[Record]: ...

    async def revoke_api_key(self, user_id: str, key_id: str) -> bool: ...

    async def authenticate_api_key(self, raw_key: str, *, now: datetime) -> Record | None: ...


class SiteSettingsStore(Protocol):
    async def get_all(self) -> Record: ...

    async def upsert(self, values: Mapping[str, Any]) -> Record: ...
