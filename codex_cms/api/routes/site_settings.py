"""Site settings routes."""

from typing import Any

from fastapi import APIRouter, Depends

from codex_cms.api.deps import get_site_settings_service, read_json
from codex_cms.auth.context import Principal
from codex_cms.auth.middleware import get_principal
from codex_cms.content.site_settings import SiteSettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("")
async def get_site_settings(
    principal: Principal | None = Depends(get_principal),
    service: SiteSettingsService = Depends(get_site_settings_service),
) -> dict[str, Any]:
    return await service.get(principal)


@router.post("")
async def update_site_settings(
    body: Any = Depends(read_json),
    principal: Principal | None = Depends(get_principal),
    service: SiteSettingsService = Depends(get_site_settings_service),
) -> dict[str, Any]:
    """Upsert settings. Body: `{"siteName": "Codex", "social": {...}}`."""
    return await service.update(principal, body)
