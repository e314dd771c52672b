"""
Public read routes for the site.

No credentials. Only `published` entities are returned, with author and
workflow fields stripped.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request

from codex_cms.api.deps import get_content_pipeline
from codex_cms.api.routes.content import RESOURCES
from codex_cms.content.pipeline import ContentPipeline
from codex_cms.content.types import EntityKind
from codex_cms.kernel.errors import NotFound

router = APIRouter(prefix="/public", tags=["Public"])

_KINDS_BY_RESOURCE = {resource: kind for kind, resource in RESOURCES.items()}


def _kind(resource: str) -> EntityKind:
    kind = _KINDS_BY_RESOURCE.get(resource)
    if kind is None:
        raise NotFound(message="Unknown resource", meta={"resource": resource})
    return kind


@router.get("/{resource}")
async def list_published(
    resource: str,
    request: Request,
    pipeline: ContentPipeline = Depends(get_content_pipeline),
) -> dict[str, Any]:
    """Published entities of one locale (`?locale=en&page=1&limit=20`)."""
    return await pipeline.list_published(_kind(resource), dict(request.query_params))


@router.get("/{resource}/{slug}")
async def get_published(
    resource: str,
    slug: str,
    locale: str | None = None,
    pipeline: ContentPipeline = Depends(get_content_pipeline),
) -> dict[str, Any]:
    return await pipeline.get_published(_kind(resource), slug, locale)
