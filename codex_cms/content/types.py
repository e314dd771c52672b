"""
Closed vocabularies of the content model.

Locales, workflow states, block tags, entity kinds and block parent kinds.
"""

from __future__ import annotations

from enum import Enum


class Locale(str, Enum):
    EN = "en"
    DE = "de"
    FR = "fr"


DEFAULT_LOCALE = Locale.EN


class PublishStatus(str, Enum):
    DRAFT = "draft"
    IN_REVIEW = "inReview"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class BlockType(str, Enum):
    HERO = "hero"
    FEATURE_GRID = "featureGrid"
    TESTIMONIAL = "testimonial"
    LOGO_CLOUD = "logoCloud"
    METRICS = "metrics"
    RICH_TEXT = "richText"
    FAQ = "faq"
    PRICE_TABLE = "priceTable"
    COMPARISON = "comparison"
    CONTACT_FORM = "contactForm"
    MEDIA = "media"


class ParentType(str, Enum):
    """Entity kinds that own blocks directly."""

    PAGE = "page"
    POST = "post"
    CASE = "case"


class EntityKind(str, Enum):
    PAGE = "page"
    BLOG_POST = "blogPost"
    CASE_STUDY = "caseStudy"
    SERVICE = "service"

    @property
    def parent_type(self) -> ParentType | None:
        """Block parent kind for this entity, None when it owns no blocks."""
        return _PARENT_TYPES.get(self)

    @property
    def label(self) -> str:
        return _LABELS[self]


_PARENT_TYPES = {
    EntityKind.PAGE: ParentType.PAGE,
    EntityKind.BLOG_POST: ParentType.POST,
    EntityKind.CASE_STUDY: ParentType.CASE,
}

_LABELS = {
    EntityKind.PAGE: "page",
    EntityKind.BLOG_POST: "blog post",
    EntityKind.CASE_STUDY: "case study",
    EntityKind.SERVICE: "service",
}
