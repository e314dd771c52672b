"""
Block payload schemas.

`data` is persisted as an opaque JSON value, but at the boundary it is a
tagged union keyed by the block `type`: each tag has its own schema and the
payload is narrowed through it before storage. Every field is optional so a
freshly inserted block (`{}`) is valid; what a field holds when present is
checked. Unknown keys are preserved.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from codex_cms.content.types import BlockType


class _Part(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class BlockData(_Part):
    """Fields every block may carry regardless of its type."""

    id: str | None = None
    type: BlockType | None = None
    visible: bool | None = None
    analytics_id: str | None = Field(default=None, alias="analyticsId")
    variant: str | None = None
    class_name: str | None = Field(default=None, alias="className")


class CallToAction(_Part):
    label: str
    href: str


class HeroMedia(_Part):
    kind: Literal["image", "video"]
    src: str
    alt: str | None = None


class Badge(_Part):
    label: str
    icon: str | None = None


class HeroData(BlockData):
    eyebrow: str | None = None
    headline: str | None = None
    subcopy: str | None = None
    media: HeroMedia | None = None
    primary_cta: CallToAction | None = Field(default=None, alias="primaryCTA")
    secondary_cta: CallToAction | None = Field(default=None, alias="secondaryCTA")
    badges: list[Badge] | None = None


class FeatureItem(_Part):
    icon: str | None = None
    title: str
    body: str | None = None


class FeatureGridData(BlockData):
    heading: str | None = None
    columns: int | None = Field(default=None, ge=2, le=4)
    items: list[FeatureItem] | None = None


class TestimonialAuthor(_Part):
    name: str
    role: str | None = None
    company: str | None = None
    avatar: str | None = None
    logo: str | None = None


class LabeledValue(_Part):
    label: str
    value: str
    help_text: str | None = Field(default=None, alias="helpText")


class TestimonialData(BlockData):
    quote: str | None = None
    author: TestimonialAuthor | None = None
    metric: LabeledValue | None = None


class Brand(_Part):
    name: str
    logo: str | None = None
    url: str | None = None


class LogoCloudData(BlockData):
    title: str | None = None
    brands: list[Brand] | None = None


class MetricsData(BlockData):
    items: list[LabeledValue] | None = None


class RichTextData(BlockData):
    # Portable text JSON or an HTML string.
    content: Any = None


class FaqItem(_Part):
    q: str
    a: str


class FaqData(BlockData):
    items: list[FaqItem] | None = None


class Plan(_Part):
    name: str
    price: str | None = None
    period: str | None = None
    features: list[str] | None = None
    cta: CallToAction | None = None


class PriceTableData(BlockData):
    plans: list[Plan] | None = None


class ComparisonData(BlockData):
    criteria: list[str] | None = None
    left: list[str] | None = None
    right: list[str] | None = None


class ContactFormData(BlockData):
    form_key: str | None = Field(default=None, alias="formKey")
    heading: str | None = None
    subcopy: str | None = None
    success_copy: str | None = Field(default=None, alias="successCopy")
    privacy_note: str | None = Field(default=None, alias="privacyNote")


class MediaData(BlockData):
    kind: Literal["image", "video"] | None = None
    # Media asset identifier or URL; storage lives outside this service.
    src: str | None = None
    alt: str | None = None
    caption: str | None = None
    poster: str | None = None


BLOCK_DATA_SCHEMAS: dict[BlockType, type[BlockData]] = {
    BlockType.HERO: HeroData,
    BlockType.FEATURE_GRID: FeatureGridData,
    BlockType.TESTIMONIAL: TestimonialData,
    BlockType.LOGO_CLOUD: LogoCloudData,
    BlockType.METRICS: MetricsData,
    BlockType.RICH_TEXT: RichTextData,
    BlockType.FAQ: FaqData,
    BlockType.PRICE_TABLE: PriceTableData,
    BlockType.COMPARISON: ComparisonData,
    BlockType.CONTACT_FORM: ContactFormData,
    BlockType.MEDIA: MediaData,
}


def narrow_block_data(block_type: BlockType, data: dict[str, Any]) -> dict[str, Any]:
    """Validate `data` against the schema of `block_type` and return the stored shape.

    Raises pydantic.ValidationError when a present field has the wrong shape.
    Keys keep their wire spelling (camelCase); keys that were not sent are not
    invented.
    """
    schema = BLOCK_DATA_SCHEMAS[block_type]
    model = schema.model_validate(data)
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)
