"""
Block-level routes.

Single blocks are created against exactly one parent (`pageId`, `postId` or
`caseId`) and keep the explicit `order` they are given.
"""

from typing import Any

from fastapi import APIRouter, Depends

from codex_cms.api.deps import get_content_pipeline, read_json
from codex_cms.auth.context import Principal
from codex_cms.auth.middleware import get_principal
from codex_cms.content.pipeline import ContentPipeline

router = APIRouter(prefix="/blocks", tags=["Blocks"])


@router.post("", status_code=201)
async def create_block(
    body: Any = Depends(read_json),
    principal: Principal | None = Depends(get_principal),
    pipeline: ContentPipeline = Depends(get_content_pipeline),
) -> dict[str, Any]:
    return await pipeline.create_block(principal, body)


@router.get("/{block_id}")
async def get_block(
    block_id: str,
    principal: Principal | None = Depends(get_principal),
    pipeline: ContentPipeline = Depends(get_content_pipeline),
) -> dict[str, Any]:
    return await pipeline.get_block(principal, block_id)


@router.put("/{block_id}")
async def update_block(
    block_id: str,
    body: Any = Depends(read_json),
    principal: Principal | None = Depends(get_principal),
    pipeline: ContentPipeline = Depends(get_content_pipeline),
) -> dict[str, Any]:
    return await pipeline.update_block(principal, block_id, body)


@router.delete("/{block_id}")
async def delete_block(
    block_id: str,
    principal: Principal | None = Depends(get_principal),
    pipeline: ContentPipeline = Depends(get_content_pipeline),
) -> dict[str, Any]:
    return await pipeline.delete_block(principal, block_id)
