"""
Admin content routes.

One router per entity kind, all built by `build_content_router`:

    GET    /{resource}                    list (filters: locale, status, slug)
    POST   /{resource}                    create
    GET    /{resource}/{entity_id}        get by id
    PUT    /{resource}/{entity_id}        full update (blocks replaced when sent)
    DELETE /{resource}/{entity_id}        delete (blocks cascade)
    PUT    /{resource}/{entity_id}/blocks replace the block set (block owners only)
"""

from typing import Any

from fastapi import APIRouter, Depends, Request

from codex_cms.api.deps import get_content_pipeline, read_json
from codex_cms.auth.context import Principal
from codex_cms.auth.middleware import get_principal
from codex_cms.content.pipeline import ContentPipeline
from codex_cms.content.types import EntityKind

RESOURCES: dict[EntityKind, str] = {
    EntityKind.PAGE: "pages",
    EntityKind.BLOG_POST: "blog-posts",
    EntityKind.CASE_STUDY: "case-studies",
    EntityKind.SERVICE: "services",
}


def build_content_router(kind: EntityKind) -> APIRouter:
    resource = RESOURCES[kind]
    router = APIRouter(prefix=f"/{resource}", tags=[kind.label])

    @router.get("", name=f"list_{kind.value}")
    async def list_entities(
        request: Request,
        principal: Principal | None = Depends(get_principal),
        pipeline: ContentPipeline = Depends(get_content_pipeline),
    ) -> dict[str, Any]:
        return await pipeline.list_entities(principal, kind, dict(request.query_params))

    @router.post("", status_code=201, name=f"create_{kind.value}")
    async def create_entity(
        body: Any = Depends(read_json),
        principal: Principal | None = Depends(get_principal),
        pipeline: ContentPipeline = Depends(get_content_pipeline),
    ) -> dict[str, Any]:
        return await pipeline.create(principal, kind, body)

    @router.get("/{entity_id}", name=f"get_{kind.value}")
    async def get_entity(
        entity_id: str,
        principal: Principal | None = Depends(get_principal),
        pipeline: ContentPipeline = Depends(get_content_pipeline),
    ) -> dict[str, Any]:
        return await pipeline.get_entity(principal, kind, entity_id)

    @router.put("/{entity_id}", name=f"update_{kind.value}")
    async def update_entity(
        entity_id: str,
        body: Any = Depends(read_json),
        principal: Principal | None = Depends(get_principal),
        pipeline: ContentPipeline = Depends(get_content_pipeline),
    ) -> dict[str, Any]:
        return await pipeline.update(principal, kind, entity_id, body)

    @router.delete("/{entity_id}", name=f"delete_{kind.value}")
    async def delete_entity(
        entity_id: str,
        principal: Principal | None = Depends(get_principal),
        pipeline: ContentPipeline = Depends(get_content_pipeline),
    ) -> dict[str, Any]:
        return await pipeline.delete(principal, kind, entity_id)

    if kind.parent_type is not None:

        @router.put("/{entity_id}/blocks", name=f"replace_{kind.value}_blocks")
        async def replace_blocks(
            entity_id: str,
            body: Any = Depends(read_json),
            principal: Principal | None = Depends(get_principal),
            pipeline: ContentPipeline = Depends(get_content_pipeline),
        ) -> dict[str, Any]:
            return await pipeline.replace_blocks(principal, kind, entity_id, body)

    return router


routers = [build_content_router(kind) for kind in RESOURCES]
