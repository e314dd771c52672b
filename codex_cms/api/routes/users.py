"""User administration routes."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from codex_cms.api.deps import get_account_service, read_json
from codex_cms.auth.context import Principal
from codex_cms.auth.middleware import get_principal
from codex_cms.auth.service import AccountService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(
    request: Request,
    principal: Principal | None = Depends(get_principal),
    service: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    return await service.list_users(principal, dict(request.query_params))


@router.patch("/{user_id}")
async def change_role(
    user_id: str,
    body: Any = Depends(read_json),
    principal: Principal | None = Depends(get_principal),
    service: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    """Change a user's role. Body: `{"role": "EDITOR"}`."""
    return await service.change_role(principal, user_id, body)
