"""
Conversions between validated inputs, stored rows and response records.

A record is the admin-facing dict shape (camelCase keys). Public views are
derived from records by dropping author and operational fields.
"""

from __future__ import annotations

from typing import Any

from codex_cms.content.schemas import EntityInput
from codex_cms.content.types import EntityKind
from codex_cms.kernel.time import coerce_utc, isoformat_z

# (attribute, wire key) pairs, beyond the columns every sluggable entity has.
COMMON_FIELDS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("slug", "slug"),
    ("locale", "locale"),
    ("status", "status"),
    ("scheduled_at", "scheduledAt"),
    ("seo", "seo"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
    ("updated_by_id", "updatedBy"),
)

ENTITY_FIELDS: dict[EntityKind, tuple[tuple[str, str], ...]] = {
    EntityKind.PAGE: (("title", "title"),),
    EntityKind.BLOG_POST: (
        ("title", "title"),
        ("excerpt", "excerpt"),
        ("cover_id", "coverId"),
        ("author_id", "authorId"),
    ),
    EntityKind.CASE_STUDY: (
        ("title", "title"),
        ("client", "client"),
        ("sector", "sector"),
        ("category", "category"),
        ("summary", "summary"),
        ("featured_image", "featuredImage"),
        ("tags", "tags"),
        ("metrics", "metrics"),
    ),
    EntityKind.SERVICE: (
        ("name", "name"),
        ("summary", "summary"),
        ("icon", "icon"),
        ("sort_order", "order"),
        ("page_id", "pageId"),
    ),
}

# Never exposed on public read paths.
PRIVATE_KEYS = frozenset({"updatedBy", "authorId", "status", "scheduledAt", "createdAt"})
PRIVATE_BLOCK_KEYS = frozenset({"pageId", "postId", "caseId", "createdAt", "updatedAt"})


def input_to_values(kind: EntityKind, payload: EntityInput) -> dict[str, Any]:
    """Column values for an insert/update. Every scalar field is replaced."""
    dumped = payload.model_dump(mode="json", exclude={"blocks", "seo", "scheduled_at"})
    values = {attr: dumped.get(attr) for attr, _ in ENTITY_FIELDS[kind]}
    values.update(
        slug=payload.slug,
        locale=payload.locale.value,
        status=payload.status.value,
        scheduled_at=coerce_utc(payload.scheduled_at) if payload.scheduled_at is not None else None,
        seo=(
            payload.seo.model_dump(mode="json", by_alias=True, exclude_none=True)
            if payload.seo is not None
            else None
        ),
    )
    if kind is EntityKind.CASE_STUDY:
        values["tags"] = values.get("tags") or []
        values["metrics"] = values.get("metrics") or {}
    if kind is EntityKind.SERVICE and values.get("sort_order") is None:
        values["sort_order"] = 0
    return values


def _wire_value(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return isoformat_z(value)
    return value


def block_to_record(row: Any) -> dict[str, Any]:
    return {
        "id": row.id,
        "type": row.type,
        "data": row.data or {},
        "order": row.order,
        "pageId": row.page_id,
        "postId": row.post_id,
        "caseId": row.case_id,
        "createdAt": _wire_value(row.created_at),
        "updatedAt": _wire_value(row.updated_at),
    }


def entity_to_record(kind: EntityKind, row: Any, blocks: list[Any] | None = None) -> dict[str, Any]:
    record = {key: _wire_value(getattr(row, attr)) for attr, key in COMMON_FIELDS}
    record.update({key: _wire_value(getattr(row, attr)) for attr, key in ENTITY_FIELDS[kind]})
    record["kind"] = kind.value
    if kind.parent_type is not None:
        record["blocks"] = [block_to_record(block) for block in blocks or []]
    return record


def public_view(record: dict[str, Any]) -> dict[str, Any]:
    view = {k: v for k, v in record.items() if k not in PRIVATE_KEYS}
    if "blocks" in view:
        view["blocks"] = [
            {k: v for k, v in block.items() if k not in PRIVATE_BLOCK_KEYS}
            for block in view["blocks"]
        ]
    return view
