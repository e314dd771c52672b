"""
Request pipeline for content operations.

Every mutation runs the same stages, in this order:

    authenticate -> authorize -> validate -> business rules -> mutate -> shape

Authorization and validation are pure, so a request that fails either never
reaches the store. Business rules (existence, slug uniqueness, referenced
rows) read the store; the store's own constraints stay authoritative and a
unique-constraint rejection surfaces as the same Conflict the pre-check
raises. Successful responses are shaped as `{"data": ...}`.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Mapping

import structlog

from codex_cms.auth.context import Principal
from codex_cms.auth.guards import AccessPolicy, authorize
from codex_cms.auth.permissions import ApiKeyPermission, Capability
from codex_cms.content.composition import BlockParent
from codex_cms.content.ports import ContentStore, Record
from codex_cms.content.records import input_to_values, public_view
from codex_cms.content.schemas import BlogPostInput, EntityInput, Pagination, ServiceInput
from codex_cms.content.status import is_publicly_visible, requires_publish_permission, scheduling_violation
from codex_cms.content.types import EntityKind, ParentType, PublishStatus
from codex_cms.content.validation import (
    FieldViolation,
    ValidationResult,
    require_valid,
    validate_block_create,
    validate_block_list,
    validate_block_update,
    validate_entity,
    validate_list_filters,
    validate_locale,
    validate_pagination,
)
from codex_cms.kernel.errors import Conflict, NotFound
from codex_cms.kernel.time import Clock, parse_isoformat, utc_now
from codex_cms.monitoring import get_metrics

logger = structlog.get_logger()


class Operation(str, Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    PUBLISH = "publish"


CONTENT_POLICIES: dict[Operation, AccessPolicy] = {
    Operation.VIEW: AccessPolicy(Capability.CONTENT_VIEW, ApiKeyPermission.READ),
    Operation.CREATE: AccessPolicy(Capability.CONTENT_CREATE, ApiKeyPermission.WRITE),
    Operation.UPDATE: AccessPolicy(Capability.CONTENT_EDIT, ApiKeyPermission.WRITE),
    Operation.DELETE: AccessPolicy(Capability.CONTENT_DELETE, ApiKeyPermission.ADMIN),
    Operation.PUBLISH: AccessPolicy(Capability.CONTENT_PUBLISH, ApiKeyPermission.WRITE),
}

PARENT_KINDS: dict[ParentType, EntityKind] = {
    ParentType.PAGE: EntityKind.PAGE,
    ParentType.POST: EntityKind.BLOG_POST,
    ParentType.CASE: EntityKind.CASE_STUDY,
}


def admin_pagination(pagination: Pagination, total: int) -> dict[str, Any]:
    return {
        "total": total,
        "limit": pagination.limit,
        "offset": pagination.offset,
        "hasMore": pagination.offset + pagination.limit < total,
    }


def public_pagination(pagination: Pagination, total: int) -> dict[str, Any]:
    return {
        "total": total,
        "page": pagination.page,
        "limit": pagination.limit,
        "pages": math.ceil(total / pagination.limit) if total else 0,
    }


def _not_found(kind: EntityKind, entity_id: str) -> NotFound:
    return NotFound(message=f"{kind.label} not found", meta={"id": entity_id})


class ContentPipeline:
    """
    Admin and public content operations over an injected store.

    Usage:
        pipeline = ContentPipeline(store)
        response = await pipeline.create(principal, EntityKind.PAGE, body)
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        clock: Clock = utc_now,
        admin_page_size: int = 50,
        public_page_size: int = 20,
    ):
        self._store = store
        self._clock = clock
        self._admin_page_size = admin_page_size
        self._public_page_size = public_page_size
        self._metrics = get_metrics()

    # ------------------------------------------------------------------
    # Stage helpers
    # ------------------------------------------------------------------

    def _authorize_publish(self, principal: Principal, payload: EntityInput) -> None:
        if requires_publish_permission(payload.status):
            authorize(principal, CONTENT_POLICIES[Operation.PUBLISH])

    def _check_schedule(self, payload: EntityInput, current: Record | None) -> None:
        current_status = PublishStatus(current["status"]) if current else None
        previous_at = parse_isoformat(current.get("scheduledAt")) if current else None
        message = scheduling_violation(
            current=current_status,
            target=payload.status,
            scheduled_at=payload.scheduled_at,
            previous_scheduled_at=previous_at,
            now=self._clock(),
        )
        if message:
            require_valid(
                ValidationResult.failure([FieldViolation(field="scheduledAt", message=message, code="schedule.invalid")])
            )

    async def _check_references(self, kind: EntityKind, payload: EntityInput) -> None:
        if isinstance(payload, BlogPostInput) and payload.author_id:
            if not await self._store.user_exists(payload.author_id):
                raise NotFound(message="Author not found", meta={"authorId": payload.author_id})
        if isinstance(payload, ServiceInput) and payload.page_id:
            if await self._store.get_entity(EntityKind.PAGE, payload.page_id) is None:
                raise NotFound(message="Linked page not found", meta={"pageId": payload.page_id})

    async def _check_slug(self, kind: EntityKind, payload: EntityInput, entity_id: str | None) -> None:
        owner = await self._store.find_slug_owner(kind, payload.slug, payload.locale)
        if owner is not None and owner != entity_id:
            raise Conflict(
                message=f"A {kind.label.lower()} with this slug already exists for this locale",
                meta={"slug": payload.slug, "locale": payload.locale.value},
            )

    def _log_mutation(self, event: str, principal: Principal, kind: str, **fields: Any) -> None:
        logger.info(event, kind=kind, principal=principal.subject_id, **fields)

    # ------------------------------------------------------------------
    # Admin reads
    # ------------------------------------------------------------------

    async def list_entities(
        self, principal: Principal | None, kind: EntityKind, params: Mapping[str, Any]
    ) -> dict[str, Any]:
        with self._metrics.time_content_operation(kind.value, "list"):
            authorize(principal, CONTENT_POLICIES[Operation.VIEW])
            pagination = require_valid(validate_pagination(params, default_limit=self._admin_page_size))
            filters = require_valid(validate_list_filters(params))

            records, total = await self._store.list_entities(
                kind,
                pagination,
                locale=filters.locale,
                status=filters.status,
                slug=filters.slug,
            )
            return {"data": records, "pagination": admin_pagination(pagination, total)}

    async def get_entity(self, principal: Principal | None, kind: EntityKind, entity_id: str) -> dict[str, Any]:
        with self._metrics.time_content_operation(kind.value, "get"):
            authorize(principal, CONTENT_POLICIES[Operation.VIEW])
            record = await self._store.get_entity(kind, entity_id)
            if record is None:
                raise _not_found(kind, entity_id)
            return {"data": record}

    # ------------------------------------------------------------------
    # Entity mutations
    # ------------------------------------------------------------------

    async def create(self, principal: Principal | None, kind: EntityKind, body: Any) -> dict[str, Any]:
        with self._metrics.time_content_operation(kind.value, "create"):
            principal = authorize(principal, CONTENT_POLICIES[Operation.CREATE])
            payload = require_valid(validate_entity(kind, body))
            self._authorize_publish(principal, payload)
            self._check_schedule(payload, None)

            await self._check_references(kind, payload)
            await self._check_slug(kind, payload, None)

            record = await self._store.create_entity(
                kind,
                input_to_values(kind, payload),
                blocks=getattr(payload, "blocks", None),
                editor_id=principal.editor_id,
            )
            self._log_mutation(
                "Content created", principal, kind.value, entity_id=record["id"], slug=payload.slug
            )
            return {"data": record}

    async def update(
        self, principal: Principal | None, kind: EntityKind, entity_id: str, body: Any
    ) -> dict[str, Any]:
        with self._metrics.time_content_operation(kind.value, "update"):
            principal = authorize(principal, CONTENT_POLICIES[Operation.UPDATE])
            payload = require_valid(validate_entity(kind, body))
            self._authorize_publish(principal, payload)

            current = await self._store.get_entity(kind, entity_id)
            if current is None:
                raise _not_found(kind, entity_id)
            self._check_schedule(payload, current)
            await self._check_references(kind, payload)
            await self._check_slug(kind, payload, entity_id)

            record = await self._store.update_entity(
                kind,
                entity_id,
                input_to_values(kind, payload),
                blocks=getattr(payload, "blocks", None),
                editor_id=principal.editor_id,
            )
            if record is None:
                raise _not_found(kind, entity_id)
            self._log_mutation(
                "Content updated",
                principal,
                kind.value,
                entity_id=entity_id,
                status=record.get("status"),
                blocks_replaced=getattr(payload, "blocks", None) is not None,
            )
            return {"data": record}

    async def delete(self, principal: Principal | None, kind: EntityKind, entity_id: str) -> dict[str, Any]:
        with self._metrics.time_content_operation(kind.value, "delete"):
            principal = authorize(principal, CONTENT_POLICIES[Operation.DELETE])
            if not await self._store.delete_entity(kind, entity_id):
                raise _not_found(kind, entity_id)
            self._log_mutation("Content deleted", principal, kind.value, entity_id=entity_id)
            return {"data": {"id": entity_id, "message": f"{kind.label} deleted"}}

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def _require_parent(self, parent: BlockParent) -> None:
        if not await self._store.parent_exists(parent):
            raise _not_found(PARENT_KINDS[parent.parent_type], parent.parent_id)

    async def replace_blocks(
        self, principal: Principal | None, kind: EntityKind, entity_id: str, body: Any
    ) -> dict[str, Any]:
        """Replace the whole block set of one entity, keeping explicit orders when every entry sets one."""
        with self._metrics.time_content_operation(kind.value, "replace_blocks"):
            principal = authorize(principal, CONTENT_POLICIES[Operation.UPDATE])
            if kind.parent_type is None:
                raise _not_found(kind, entity_id)
            descriptors = require_valid(validate_block_list(body))

            parent = BlockParent(kind.parent_type, entity_id)
            await self._require_parent(parent)
            blocks = await self._store.replace_blocks(parent, descriptors, use_explicit_order=True)
            self._log_mutation(
                "Blocks replaced", principal, kind.value, entity_id=entity_id, count=len(blocks)
            )
            return {"data": blocks}

    async def get_block(self, principal: Principal | None, block_id: str) -> dict[str, Any]:
        with self._metrics.time_content_operation("block", "get"):
            authorize(principal, CONTENT_POLICIES[Operation.VIEW])
            block = await self._store.get_block(block_id)
            if block is None:
                raise NotFound(message="Block not found", meta={"id": block_id})
            return {"data": block}

    async def create_block(self, principal: Principal | None, body: Any) -> dict[str, Any]:
        with self._metrics.time_content_operation("block", "create"):
            principal = authorize(principal, CONTENT_POLICIES[Operation.UPDATE])
            payload = require_valid(validate_block_create(body))

            ((parent_type, parent_id),) = payload.parent_refs().items()
            parent = BlockParent(parent_type, parent_id)
            await self._require_parent(parent)
            block = await self._store.create_block(parent, payload)
            self._log_mutation(
                "Block created", principal, "block", block_id=block["id"], parent_id=parent_id
            )
            return {"data": block}

    async def update_block(self, principal: Principal | None, block_id: str, body: Any) -> dict[str, Any]:
        with self._metrics.time_content_operation("block", "update"):
            principal = authorize(principal, CONTENT_POLICIES[Operation.UPDATE])
            payload = require_valid(validate_block_update(body))
            block = await self._store.update_block(block_id, payload)
            if block is None:
                raise NotFound(message="Block not found", meta={"id": block_id})
            self._log_mutation("Block updated", principal, "block", block_id=block_id)
            return {"data": block}

    async def delete_block(self, principal: Principal | None, block_id: str) -> dict[str, Any]:
        with self._metrics.time_content_operation("block", "delete"):
            principal = authorize(principal, CONTENT_POLICIES[Operation.UPDATE])
            if not await self._store.delete_block(block_id):
                raise NotFound(message="Block not found", meta={"id": block_id})
            self._log_mutation("Block deleted", principal, "block", block_id=block_id)
            return {"data": {"id": block_id, "message": "Block deleted"}}

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    async def list_published(self, kind: EntityKind, params: Mapping[str, Any]) -> dict[str, Any]:
        """Published entities of one locale, author and workflow fields stripped."""
        with self._metrics.time_content_operation(kind.value, "public_list"):
            pagination = require_valid(validate_pagination(params, default_limit=self._public_page_size))
            locale = require_valid(validate_locale(params.get("locale")))

            records, total = await self._store.list_entities(
                kind, pagination, locale=locale, status=PublishStatus.PUBLISHED
            )
            visible = [public_view(r) for r in records if is_publicly_visible(r.get("status"))]
            return {"data": visible, "pagination": public_pagination(pagination, total)}

    async def get_published(self, kind: EntityKind, slug: str, locale: Any) -> dict[str, Any]:
        with self._metrics.time_content_operation(kind.value, "public_get"):
            resolved = require_valid(validate_locale(locale))
            records, _ = await self._store.list_entities(
                kind,
                Pagination(limit=1),
                locale=resolved,
                status=PublishStatus.PUBLISHED,
                slug=slug,
            )
            if not records or not is_publicly_visible(records[0].get("status")):
                raise NotFound(message=f"{kind.label} not found", meta={"slug": slug, "locale": resolved.value})
            return {"data": public_view(records[0])}
