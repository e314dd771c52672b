"""Request schemas for user and API key management."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from codex_cms.auth.permissions import ApiKeyPermission, Role
from codex_cms.content.schemas import CamelModel


class RoleChangeInput(CamelModel):
    role: Role


class ApiKeyCreateInput(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    permission_level: ApiKeyPermission = ApiKeyPermission.READ
    expires_at: datetime | None = None
