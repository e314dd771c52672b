"""
SQLAlchemy-backed content store.

Each public method is one transaction. Entity writes that carry a block list
replace the block set inside that same transaction, so a failed insert
leaves both the entity row and its previous blocks untouched.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Sequence

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codex_cms.content.composition import (
    BlockParent,
    build_block,
    ensure_order_free,
    load_blocks,
    lock_parent,
    next_order,
    parent_of,
    replace_blocks,
)
from codex_cms.content.records import block_to_record, entity_to_record
from codex_cms.content.schemas import BlockDescriptor, Pagination
from codex_cms.content.types import EntityKind, Locale, PublishStatus
from codex_cms.db.client import Database
from codex_cms.db.errors import storage_errors
from codex_cms.db.models import PARENT_COLUMNS, Block, BlogPost, CaseStudy, Page, Service, User
from codex_cms.db.models.content import PARENT_MODELS
from codex_cms.kernel.errors import NotFound
from codex_cms.kernel.time import utc_now

logger = structlog.get_logger()

ENTITY_MODELS = {
    EntityKind.PAGE: Page,
    EntityKind.BLOG_POST: BlogPost,
    EntityKind.CASE_STUDY: CaseStudy,
    EntityKind.SERVICE: Service,
}


def _operation(verb: str, kind: EntityKind) -> str:
    return f"{verb}_{kind.value}"


class SqlContentStore:
    """Content persistence over a shared `Database` handle."""

    def __init__(self, db: Database):
        self._db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _record(self, session: AsyncSession, kind: EntityKind, row: Any) -> dict[str, Any]:
        blocks = None
        if kind.parent_type is not None:
            blocks = await load_blocks(session, BlockParent(kind.parent_type, row.id))
        return entity_to_record(kind, row, blocks)

    async def _records(self, session: AsyncSession, kind: EntityKind, rows: Sequence[Any]) -> list[dict[str, Any]]:
        if kind.parent_type is None or not rows:
            return [entity_to_record(kind, row) for row in rows]

        column = PARENT_COLUMNS[kind.parent_type]
        result = await session.execute(
            select(Block)
            .where(column.in_([row.id for row in rows]))
            .order_by(Block.order, Block.created_at, Block.id)
        )
        grouped: dict[str, list[Block]] = defaultdict(list)
        for block in result.scalars().all():
            grouped[getattr(block, column.key)].append(block)
        return [entity_to_record(kind, row, grouped.get(row.id, [])) for row in rows]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_entity(self, kind: EntityKind, entity_id: str) -> dict[str, Any] | None:
        model = ENTITY_MODELS[kind]
        async with storage_errors(_operation("get", kind), entity_id=entity_id):
            async with self._db.session() as session:
                row = await session.get(model, entity_id)
                if row is None:
                    return None
                return await self._record(session, kind, row)

    async def find_slug_owner(self, kind: EntityKind, slug: str, locale: Locale) -> str | None:
        model = ENTITY_MODELS[kind]
        async with storage_errors(_operation("find_slug", kind), slug=slug):
            async with self._db.session() as session:
                result = await session.execute(
                    select(model.id).where(model.slug == slug, model.locale == Locale(locale).value)
                )
                return result.scalar_one_or_none()

    async def user_exists(self, user_id: str) -> bool:
        async with storage_errors("get_user", user_id=user_id):
            async with self._db.session() as session:
                result = await session.execute(select(User.id).where(User.id == user_id))
                return result.scalar_one_or_none() is not None

    async def parent_exists(self, parent: BlockParent) -> bool:
        model = PARENT_MODELS[parent.parent_type]
        async with storage_errors("get_parent", parent_id=parent.parent_id):
            async with self._db.session() as session:
                result = await session.execute(select(model.id).where(model.id == parent.parent_id))
                return result.scalar_one_or_none() is not None

    async def list_entities(
        self,
        kind: EntityKind,
        pagination: Pagination,
        *,
        locale: Locale | None = None,
        status: PublishStatus | None = None,
        slug: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        model = ENTITY_MODELS[kind]
        filters = []
        if locale is not None:
            filters.append(model.locale == Locale(locale).value)
        if status is not None:
            filters.append(model.status == PublishStatus(status).value)
        if slug is not None:
            filters.append(model.slug == slug)

        if kind is EntityKind.SERVICE:
            ordering = (model.sort_order, model.updated_at.desc(), model.id)
        else:
            ordering = (model.updated_at.desc(), model.id)

        async with storage_errors(_operation("list", kind)):
            async with self._db.session() as session:
                total = (
                    await session.execute(select(func.count()).select_from(model).where(*filters))
                ).scalar_one()
                result = await session.execute(
                    select(model)
                    .where(*filters)
                    .order_by(*ordering)
                    .limit(pagination.limit)
                    .offset(pagination.offset)
                )
                rows = list(result.scalars().all())
                return await self._records(session, kind, rows), int(total)

    # ------------------------------------------------------------------
    # Entity writes
    # ------------------------------------------------------------------

    async def create_entity(
        self,
        kind: EntityKind,
        values: dict[str, Any],
        *,
        blocks: Sequence[BlockDescriptor] | None,
        editor_id: str | None,
    ) -> dict[str, Any]:
        model = ENTITY_MODELS[kind]
        async with storage_errors(_operation("create", kind), slug=values.get("slug")):
            async with self._db.session() as session:
                row = model(**values, updated_by_id=editor_id)
                session.add(row)
                await session.flush()
                if blocks is not None and kind.parent_type is not None:
                    await replace_blocks(session, BlockParent(kind.parent_type, row.id), blocks)
                return await self._record(session, kind, row)

    async def update_entity(
        self,
        kind: EntityKind,
        entity_id: str,
        values: dict[str, Any],
        *,
        blocks: Sequence[BlockDescriptor] | None,
        editor_id: str | None,
    ) -> dict[str, Any] | None:
        model = ENTITY_MODELS[kind]
        async with storage_errors(_operation("update", kind), entity_id=entity_id):
            async with self._db.session() as session:
                result = await session.execute(
                    select(model).where(model.id == entity_id).with_for_update()
                )
                row = result.scalar_one_or_none()
                if row is None:
                    return None

                for attr, value in values.items():
                    setattr(row, attr, value)
                if editor_id is not None:
                    row.updated_by_id = editor_id
                row.updated_at = utc_now()
                await session.flush()

                if blocks is not None and kind.parent_type is not None:
                    await replace_blocks(session, BlockParent(kind.parent_type, row.id), blocks)
                return await self._record(session, kind, row)

    async def delete_entity(self, kind: EntityKind, entity_id: str) -> bool:
        model = ENTITY_MODELS[kind]
        async with storage_errors(_operation("delete", kind), entity_id=entity_id):
            async with self._db.session() as session:
                # Blocks go with their parent through ON DELETE CASCADE.
                result = await session.execute(delete(model).where(model.id == entity_id))
                return bool(result.rowcount)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def replace_blocks(
        self,
        parent: BlockParent,
        descriptors: Sequence[BlockDescriptor],
        *,
        use_explicit_order: bool = False,
    ) -> list[dict[str, Any]]:
        async with storage_errors("replace_blocks", parent_id=parent.parent_id):
            async with self._db.session() as session:
                rows = await replace_blocks(
                    session, parent, descriptors, use_explicit_order=use_explicit_order
                )
                return [block_to_record(row) for row in rows]

    async def get_block(self, block_id: str) -> dict[str, Any] | None:
        async with storage_errors("get_block", block_id=block_id):
            async with self._db.session() as session:
                row = await session.get(Block, block_id)
                return block_to_record(row) if row is not None else None

    async def create_block(self, parent: BlockParent, descriptor: BlockDescriptor) -> dict[str, Any]:
        async with storage_errors("create_block", parent_id=parent.parent_id):
            async with self._db.session() as session:
                if not await lock_parent(session, parent):
                    raise NotFound(message=f"{parent.parent_type.value} not found")
                order = descriptor.order
                if order is None:
                    order = await next_order(session, parent)
                else:
                    await ensure_order_free(session, parent, order)
                row = build_block(parent, descriptor, order)
                session.add(row)
                await session.flush()
                return block_to_record(row)

    async def update_block(self, block_id: str, descriptor: BlockDescriptor) -> dict[str, Any] | None:
        async with storage_errors("update_block", block_id=block_id):
            async with self._db.session() as session:
                current = await session.get(Block, block_id)
                if current is None:
                    return None
                # Parent before block, the same lock order replace_blocks takes.
                parent = parent_of(current)
                await lock_parent(session, parent)
                result = await session.execute(
                    select(Block)
                    .where(Block.id == block_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
                row = result.scalar_one_or_none()
                if row is None:
                    return None
                if descriptor.order is not None and descriptor.order != row.order:
                    await ensure_order_free(session, parent, descriptor.order, block_id=block_id)
                    row.order = descriptor.order
                row.type = descriptor.type.value
                row.data = dict(descriptor.data)
                row.updated_at = utc_now()
                await session.flush()
                return block_to_record(row)

    async def delete_block(self, block_id: str) -> bool:
        async with storage_errors("delete_block", block_id=block_id):
            async with self._db.session() as session:
                result = await session.execute(delete(Block).where(Block.id == block_id))
                return bool(result.rowcount)
