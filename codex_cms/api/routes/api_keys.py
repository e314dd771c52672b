"""
API Key Management Routes.

Provides endpoints for:
- Creating API keys (the full key is shown once)
- Listing the caller's API keys
- Revoking an API key
"""

from typing import Any

from fastapi import APIRouter, Depends

from codex_cms.api.deps import get_account_service, read_json
from codex_cms.auth.context import Principal
from codex_cms.auth.middleware import get_principal
from codex_cms.auth.service import AccountService

router = APIRouter(prefix="/settings/api-keys", tags=["API Keys"])


@router.post("", status_code=201)
async def create_key(
    body: Any = Depends(read_json),
    principal: Principal | None = Depends(get_principal),
    service: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    return await service.create_api_key(principal, body)


@router.get("")
async def list_keys(
    principal: Principal | None = Depends(get_principal),
    service: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    return await service.list_api_keys(principal)


@router.delete("/{key_id}")
async def revoke_key(
    key_id: str,
    principal: Principal | None = Depends(get_principal),
    service: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    return await service.revoke_api_key(principal, key_id)
