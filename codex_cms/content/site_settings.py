"""
Site settings: a flat key/value map edited from the admin settings screen.

Values are stored as JSON objects. Objects and arrays are kept as sent; any
other value is wrapped as `{"value": ...}` so the column always holds a
structured document.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

import structlog

from codex_cms.auth.context import Principal
from codex_cms.auth.guards import AccessPolicy, authorize
from codex_cms.auth.permissions import ApiKeyPermission, Capability
from codex_cms.content.ports import SiteSettingsStore
from codex_cms.content.validation import FieldViolation, ValidationResult, require_valid

logger = structlog.get_logger()

SETTINGS_VIEW = AccessPolicy(Capability.SETTINGS_VIEW, ApiKeyPermission.READ)
SETTINGS_EDIT = AccessPolicy(Capability.SETTINGS_EDIT, ApiKeyPermission.ADMIN)

SETTING_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_.-]{0,99}$")


def stored_value(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return value
    return {"value": value}


def validate_settings(payload: Any) -> ValidationResult[dict[str, Any]]:
    if not isinstance(payload, Mapping):
        return ValidationResult.failure(
            [FieldViolation(field="body", message="Request body must be a JSON object", code="type_error")]
        )

    errors = [
        FieldViolation(
            field=str(key),
            message="Setting keys start with a letter and use letters, digits, '_', '.' or '-' (max 100)",
            code="settings.invalid_key",
        )
        for key in payload
        if not SETTING_KEY_RE.fullmatch(str(key))
    ]
    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success({str(key): stored_value(value) for key, value in payload.items()})


class SiteSettingsService:
    def __init__(self, store: SiteSettingsStore):
        self._store = store

    async def get(self, principal: Principal | None) -> dict[str, Any]:
        authorize(principal, SETTINGS_VIEW)
        return {"data": await self._store.get_all()}

    async def update(self, principal: Principal | None, body: Any) -> dict[str, Any]:
        """Upsert every key in `body`; keys not mentioned are left alone."""
        principal = authorize(principal, SETTINGS_EDIT)
        values = require_valid(validate_settings(body))

        settings = await self._store.upsert(values)
        logger.info("Site settings updated", principal=principal.subject_id, keys=sorted(values))
        return {"data": settings}
