"""
Request payload schemas.

Wire format is camelCase (`scheduledAt`, `ogImage`); attributes are
snake_case. Unknown keys are ignored. Create and update share one schema per
entity kind: an update replaces every scalar field.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from codex_cms.content.types import BlockType, EntityKind, Locale, ParentType, PublishStatus

SLUG_PATTERN = r"^[a-z0-9-]+$"

Slug = Annotated[str, Field(min_length=1, max_length=200, pattern=SLUG_PATTERN)]
BlockOrder = Annotated[int, Field(ge=0, strict=True)]

# Keys that belong to the block envelope, never to its payload.
_BLOCK_ENVELOPE_KEYS = frozenset({"order", "pageId", "postId", "caseId", "page_id", "post_id", "case_id"})


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SEOInput(CamelModel):
    title: str | None = Field(default=None, max_length=300)
    description: str | None = Field(default=None, max_length=1000)
    noindex: bool | None = None
    canonical: AnyHttpUrl | None = None
    og_image: AnyHttpUrl | None = None


class BlockDescriptor(CamelModel):
    """One entry of an ordered block list: a type tag, its payload and an optional order."""

    type: BlockType
    data: dict[str, Any] = Field(default_factory=dict)
    order: BlockOrder | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_inline_payload(cls, value: Any) -> Any:
        # The editor sends block fields inline ({"type": "hero", "headline": ...}).
        if isinstance(value, dict) and "data" not in value:
            envelope = {k: v for k, v in value.items() if k in _BLOCK_ENVELOPE_KEYS}
            envelope["type"] = value.get("type")
            envelope["data"] = {k: v for k, v in value.items() if k not in _BLOCK_ENVELOPE_KEYS}
            return envelope
        return value


class BlockCreateInput(BlockDescriptor):
    page_id: str | None = None
    post_id: str | None = None
    case_id: str | None = None

    def parent_refs(self) -> dict[ParentType, str]:
        refs = {
            ParentType.PAGE: self.page_id,
            ParentType.POST: self.post_id,
            ParentType.CASE: self.case_id,
        }
        return {parent_type: ref for parent_type, ref in refs.items() if ref}


class BlockListInput(CamelModel):
    blocks: list[BlockDescriptor] = Field(default_factory=list)


class EntityInput(CamelModel):
    slug: Slug
    locale: Locale
    status: PublishStatus = PublishStatus.DRAFT
    scheduled_at: datetime | None = None
    seo: SEOInput | None = None


class BlockOwnerInput(EntityInput):
    # None leaves the current blocks alone; a list (even empty) replaces them.
    blocks: list[BlockDescriptor] | None = None


class PageInput(BlockOwnerInput):
    title: str = Field(min_length=1, max_length=300)


class BlogPostInput(BlockOwnerInput):
    title: str = Field(min_length=1, max_length=300)
    excerpt: str | None = Field(default=None, max_length=1000)
    cover_id: str | None = None
    author_id: str | None = None


class CaseStudyInput(BlockOwnerInput):
    title: str = Field(min_length=1, max_length=300)
    client: str | None = None
    sector: str | None = None
    category: str | None = None
    summary: str | None = None
    featured_image: AnyHttpUrl | None = None
    tags: list[str] | None = None
    metrics: dict[str, Any] | None = None


class ServiceInput(EntityInput):
    name: str = Field(min_length=1, max_length=100)
    summary: str | None = Field(default=None, max_length=300)
    icon: str | None = None
    sort_order: int | None = Field(default=None, ge=0, alias="order")
    page_id: str | None = None


ENTITY_SCHEMAS: dict[EntityKind, type[EntityInput]] = {
    EntityKind.PAGE: PageInput,
    EntityKind.BLOG_POST: BlogPostInput,
    EntityKind.CASE_STUDY: CaseStudyInput,
    EntityKind.SERVICE: ServiceInput,
}


class Pagination(BaseModel):
    limit: int
    offset: int = 0

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1


MAX_PAGE_SIZE = 100
