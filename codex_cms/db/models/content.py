"""
Content tables.

Every sluggable table carries a composite unique (slug, locale) constraint;
it is the authoritative guard against duplicate slugs. Blocks hang off exactly
one parent through three mutually exclusive foreign keys, and a check
constraint makes "exactly one parent" a storage-level invariant. Unique
indexes keep each order value to one block per parent.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declared_attr

from codex_cms.content.types import ParentType
from codex_cms.db.models.base import Base
from codex_cms.kernel.ids import id_factory
from codex_cms.kernel.time import utc_now


class SluggableMixin:
    """Columns shared by Page, BlogPost, CaseStudy and Service."""

    slug = Column(String(200), nullable=False)
    locale = Column(String(5), nullable=False, index=True)  # en, de, fr
    status = Column(String(20), nullable=False, default="draft", index=True)  # draft, inReview, scheduled, published
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    seo = Column(JSONB, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, index=True)

    @declared_attr
    def updated_by_id(cls):
        return Column(String(100), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class Page(SluggableMixin, Base):
    __tablename__ = "pages"
    __table_args__ = (UniqueConstraint("slug", "locale", name="uq_pages_slug_locale"),)

    id = Column(String(100), primary_key=True, default=id_factory("page"))
    title = Column(Text, nullable=False)


class BlogPost(SluggableMixin, Base):
    __tablename__ = "blog_posts"
    __table_args__ = (UniqueConstraint("slug", "locale", name="uq_blog_posts_slug_locale"),)

    id = Column(String(100), primary_key=True, default=id_factory("blog_post"))
    title = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    cover_id = Column(String(200), nullable=True)  # media asset reference
    author_id = Column(String(100), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)


class CaseStudy(SluggableMixin, Base):
    __tablename__ = "case_studies"
    __table_args__ = (UniqueConstraint("slug", "locale", name="uq_case_studies_slug_locale"),)

    id = Column(String(100), primary_key=True, default=id_factory("case_study"))
    title = Column(Text, nullable=False)
    client = Column(Text, nullable=True)
    sector = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    featured_image = Column(Text, nullable=True)
    tags = Column(JSONB, nullable=False, default=list)
    metrics = Column(JSONB, nullable=False, default=dict)


class Service(SluggableMixin, Base):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("slug", "locale", name="uq_services_slug_locale"),)

    id = Column(String(100), primary_key=True, default=id_factory("service"))
    name = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    icon = Column(Text, nullable=True)
    sort_order = Column("order", Integer, nullable=False, default=0)
    # A service renders through an optional linked page and its blocks.
    page_id = Column(String(100), ForeignKey("pages.id", ondelete="SET NULL"), nullable=True)


class Block(Base):
    __tablename__ = "blocks"
    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN page_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN post_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN case_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_blocks_exactly_one_parent",
        ),
        CheckConstraint('"order" >= 0', name="ck_blocks_order_non_negative"),
        Index("uq_blocks_page_order", "page_id", "order", unique=True),
        Index("uq_blocks_post_order", "post_id", "order", unique=True),
        Index("uq_blocks_case_order", "case_id", "order", unique=True),
    )

    id = Column(String(100), primary_key=True, default=id_factory("block"))
    type = Column(String(30), nullable=False)
    data = Column(JSONB, nullable=False, default=dict)
    order = Column("order", Integer, nullable=False, default=0)

    page_id = Column(String(100), ForeignKey("pages.id", ondelete="CASCADE"), nullable=True)
    post_id = Column(String(100), ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=True)
    case_id = Column(String(100), ForeignKey("case_studies.id", ondelete="CASCADE"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)


PARENT_COLUMNS = {
    ParentType.PAGE: Block.page_id,
    ParentType.POST: Block.post_id,
    ParentType.CASE: Block.case_id,
}

PARENT_MODELS = {
    ParentType.PAGE: Page,
    ParentType.POST: BlogPost,
    ParentType.CASE: CaseStudy,
}
