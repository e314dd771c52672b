"""
Block composition engine.

Replaces the full block set of one parent as a unit: lock the parent row,
delete every block it owns, insert the new list in order, read the result
back. All of it runs on the caller's session, so it commits or rolls back
together with whatever else that transaction does.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codex_cms.content.schemas import BlockDescriptor
from codex_cms.content.types import ParentType
from codex_cms.db.models import PARENT_COLUMNS, Block
from codex_cms.db.models.content import PARENT_MODELS
from codex_cms.kernel.errors import Conflict, NotFound

logger = structlog.get_logger()

PARENT_ATTRS: dict[ParentType, str] = {
    ParentType.PAGE: "page_id",
    ParentType.POST: "post_id",
    ParentType.CASE: "case_id",
}


@dataclass(frozen=True)
class BlockParent:
    """The single owner of a block set."""

    parent_type: ParentType
    parent_id: str

    @property
    def column(self):
        return PARENT_COLUMNS[self.parent_type]

    @property
    def attr(self) -> str:
        return PARENT_ATTRS[self.parent_type]


def resolve_orders(descriptors: Sequence[BlockDescriptor], *, use_explicit: bool = False) -> list[int]:
    """Order values for a replacement list.

    Positions (0..n-1) by default. With `use_explicit`, orders the caller set
    on every entry are kept as given.
    """
    if use_explicit and descriptors and all(d.order is not None for d in descriptors):
        return [int(d.order) for d in descriptors]
    return list(range(len(descriptors)))


async def lock_parent(session: AsyncSession, parent: BlockParent) -> bool:
    """Take a row lock on the parent. Concurrent replacements of one parent queue here."""
    model = PARENT_MODELS[parent.parent_type]
    result = await session.execute(
        select(model.id).where(model.id == parent.parent_id).with_for_update()
    )
    return result.scalar_one_or_none() is not None


async def load_blocks(session: AsyncSession, parent: BlockParent) -> list[Block]:
    """Blocks of `parent`, ascending by order; ties fall back to creation time, then id."""
    result = await session.execute(
        select(Block)
        .where(parent.column == parent.parent_id)
        .order_by(Block.order, Block.created_at, Block.id)
    )
    return list(result.scalars().all())


async def next_order(session: AsyncSession, parent: BlockParent) -> int:
    result = await session.execute(
        select(func.max(Block.order)).where(parent.column == parent.parent_id)
    )
    current = result.scalar_one_or_none()
    return 0 if current is None else int(current) + 1


def parent_of(block: Block) -> BlockParent:
    for parent_type, attr in PARENT_ATTRS.items():
        parent_id = getattr(block, attr)
        if parent_id is not None:
            return BlockParent(parent_type, parent_id)
    raise ValueError(f"block {block.id} has no parent")


async def ensure_order_free(
    session: AsyncSession, parent: BlockParent, order: int, *, block_id: str | None = None
) -> None:
    """Raise Conflict when another block of `parent` already holds `order`.

    Only meaningful with the parent row locked.
    """
    query = select(Block.id).where(parent.column == parent.parent_id, Block.order == order)
    if block_id is not None:
        query = query.where(Block.id != block_id)
    holder = (await session.execute(query.limit(1))).scalar_one_or_none()
    if holder is not None:
        raise order_taken(order, holder)


def order_taken(order: int, holder_id: str) -> Conflict:
    return Conflict(
        message=f"order {order} is already used by another block",
        meta={"order": order, "blockId": holder_id},
    )


def build_block(parent: BlockParent, descriptor: BlockDescriptor, order: int) -> Block:
    return Block(
        type=descriptor.type.value,
        data=dict(descriptor.data),
        order=order,
        **{parent.attr: parent.parent_id},
    )


async def write_blocks(
    session: AsyncSession,
    parent: BlockParent,
    descriptors: Sequence[BlockDescriptor],
    orders: Sequence[int],
) -> None:
    session.add_all(
        [build_block(parent, descriptor, order) for descriptor, order in zip(descriptors, orders)]
    )
    await session.flush()


async def replace_blocks(
    session: AsyncSession,
    parent: BlockParent,
    descriptors: Sequence[BlockDescriptor],
    *,
    use_explicit_order: bool = False,
) -> list[Block]:
    """
    Replace every block of `parent` with `descriptors`.

    Raises NotFound when the parent does not exist; nothing is deleted in
    that case. Any storage error propagates and the caller's transaction
    rolls back, leaving the previous block set untouched.
    """
    if not await lock_parent(session, parent):
        raise NotFound(
            message=f"{parent.parent_type.value} not found",
            meta={"parent_type": parent.parent_type.value, "parent_id": parent.parent_id},
        )

    deleted = await session.execute(delete(Block).where(parent.column == parent.parent_id))
    orders = resolve_orders(descriptors, use_explicit=use_explicit_order)
    await write_blocks(session, parent, descriptors, orders)
    blocks = await load_blocks(session, parent)

    logger.debug(
        "Block set replaced",
        parent_type=parent.parent_type.value,
        parent_id=parent.parent_id,
        removed=deleted.rowcount,
        inserted=len(descriptors),
    )
    return blocks
