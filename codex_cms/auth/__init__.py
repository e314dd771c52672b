"""Authentication and authorization for the content API."""

from codex_cms.auth.context import AuthType, Principal
from codex_cms.auth.permissions import ApiKeyPermission, Capability, Role

__all__ = ["AuthType", "Principal", "ApiKeyPermission", "Capability", "Role"]
