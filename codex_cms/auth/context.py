"""
Authenticated principal for the content API.

Two authentication methods resolve to the same Principal type:
- Session tokens (admin application users), carrying a ranked role.
- API keys (non-interactive integrations), carrying a permission level.

The content core never authenticates by itself; it only authorizes a
principal that the auth middleware already resolved.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from codex_cms.auth.permissions import (
    ApiKeyPermission,
    Capability,
    Role,
    api_key_allows,
    can,
)
from codex_cms.kernel.time import utc_now


class AuthType(str, Enum):
    """Type of authentication used."""

    SESSION = "session"
    API_KEY = "api_key"


@dataclass(frozen=True)
class Principal:
    """
    Immutable authenticated caller.

    Usage:
        @router.post("/pages")
        async def create_page(principal: Principal | None = Depends(get_principal)):
            ...
    """

    auth_type: AuthType
    user_id: str
    role: Role | None = None
    permission_level: ApiKeyPermission | None = None
    email: str | None = None
    key_id: str | None = None
    authenticated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def session(cls, user_id: str, role: Role, email: str | None = None) -> "Principal":
        return cls(auth_type=AuthType.SESSION, user_id=user_id, role=role, email=email)

    @classmethod
    def api_key(
        cls, user_id: str, permission_level: ApiKeyPermission, key_id: str | None = None
    ) -> "Principal":
        return cls(
            auth_type=AuthType.API_KEY,
            user_id=user_id,
            permission_level=permission_level,
            key_id=key_id,
        )

    @property
    def is_session(self) -> bool:
        return self.auth_type is AuthType.SESSION

    @property
    def subject_id(self) -> str:
        """Stable identifier for logs: `session:<user>` or `key:<key>`."""
        if self.is_session:
            return f"session:{self.user_id}"
        return f"key:{self.key_id or self.user_id}"

    @property
    def editor_id(self) -> str | None:
        """Human "last editor" identity. API-key writes do not carry one."""
        return self.user_id if self.is_session else None

    def allows(self, capability: Capability, api_key_level: ApiKeyPermission | None) -> bool:
        """Check the scale that matches how this principal authenticated.

        `api_key_level=None` marks a session-only action.
        """
        if self.is_session:
            return can(self.role, capability)
        if api_key_level is None:
            return False
        return api_key_allows(self.permission_level, api_key_level)

    def to_audit_log(self) -> dict:
        return {
            "auth_type": self.auth_type.value,
            "user_id": self.user_id,
            "role": self.role.value if self.role else None,
            "permission_level": self.permission_level.value if self.permission_level else None,
            "key_id": self.key_id,
            "authenticated_at": self.authenticated_at.isoformat(),
        }
