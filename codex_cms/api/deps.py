"""
FastAPI dependencies.

Everything process-wide lives on `app.state` (set up in the lifespan, or by
tests directly) and is handed to routes from here.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import Depends, Request

from codex_cms.auth.service import AccountService
from codex_cms.config import Settings, get_settings
from codex_cms.content.pipeline import ContentPipeline
from codex_cms.content.ports import AccountStore, ContentStore, SiteSettingsStore
from codex_cms.content.site_settings import SiteSettingsService
from codex_cms.db.client import Database
from codex_cms.kernel.time import Clock, utc_now
from codex_cms.net.dns_cache import DNSCache

# Stands in for a body that is not valid JSON; validation reports it after
# authorization has run.
MALFORMED_BODY = object()


def _state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialized. Is the application lifespan running?")
    return value


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or utc_now


def get_database(request: Request) -> Database | None:
    return getattr(request.app.state, "db", None)


def get_dns_cache(request: Request) -> DNSCache | None:
    return getattr(request.app.state, "dns_cache", None)


def get_content_store(request: Request) -> ContentStore:
    return _state(request, "content_store")


def get_account_store(request: Request) -> AccountStore:
    return _state(request, "account_store")


def get_site_settings_store(request: Request) -> SiteSettingsStore:
    return _state(request, "site_settings_store")


def get_content_pipeline(
    store: ContentStore = Depends(get_content_store),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> ContentPipeline:
    return ContentPipeline(
        store,
        clock=clock,
        admin_page_size=settings.default_admin_page_size,
        public_page_size=settings.default_public_page_size,
    )


def get_account_service(
    store: AccountStore = Depends(get_account_store),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> AccountService:
    return AccountService(store, clock=clock, page_size=settings.default_admin_page_size)


def get_site_settings_service(
    store: SiteSettingsStore = Depends(get_site_settings_store),
) -> SiteSettingsService:
    return SiteSettingsService(store)


async def read_json(request: Request) -> Any:
    """Raw request JSON. Empty bodies are None; malformed ones are MALFORMED_BODY."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return MALFORMED_BODY
