"""
Authorization guards.

Each operation names an `AccessPolicy`: the capability a session principal
needs and the level an API-key principal needs. `authorize` turns a failed
check into the matching error.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from codex_cms.auth.context import Principal
from codex_cms.auth.permissions import ApiKeyPermission, Capability
from codex_cms.kernel.errors import AuthenticationRequired, AuthorizationDenied

logger = structlog.get_logger()


@dataclass(frozen=True)
class AccessPolicy:
    capability: Capability
    # None: API keys may never perform the action.
    api_key_level: ApiKeyPermission | None


def authorize(principal: Principal | None, policy: AccessPolicy) -> Principal:
    if principal is None:
        raise AuthenticationRequired()
    if not principal.allows(policy.capability, policy.api_key_level):
        logger.info(
            "Authorization denied",
            principal=principal.subject_id,
            capability=policy.capability.value,
        )
        raise AuthorizationDenied(meta={"required": policy.capability.value})
    return principal
