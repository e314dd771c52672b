"""
Content Permissions

Centralized permission model for the admin surface.

Two independent scales:
- Session principals carry a ranked role (OWNER > ADMIN > EDITOR > AUTHOR) and
  are checked against either a minimum role or the capability matrix.
- API-key principals carry a coarse permission level (read < write < admin).

The scales never cross: a role is never compared against an API-key level.
Every check here is a pure predicate; callers decide how to respond.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    AUTHOR = "AUTHOR"


ROLE_RANK: dict[Role, int] = {
    Role.OWNER: 4,
    Role.ADMIN: 3,
    Role.EDITOR: 2,
    Role.AUTHOR: 1,
}


class Capability(str, Enum):
    # Content
    CONTENT_VIEW = "content.view"
    CONTENT_CREATE = "content.create"
    CONTENT_EDIT = "content.edit"
    CONTENT_DELETE = "content.delete"
    CONTENT_PUBLISH = "content.publish"

    # Media
    MEDIA_VIEW = "media.view"
    MEDIA_UPLOAD = "media.upload"
    MEDIA_DELETE = "media.delete"

    # Users
    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_EDIT = "users.edit"
    USERS_DELETE = "users.delete"
    USERS_MANAGE = "users.manage"

    # Settings
    SETTINGS_VIEW = "settings.view"
    SETTINGS_EDIT = "settings.edit"


_EVERYONE = frozenset({Role.AUTHOR, Role.EDITOR, Role.ADMIN, Role.OWNER})
_EDITORS = frozenset({Role.EDITOR, Role.ADMIN, Role.OWNER})
_ADMINS = frozenset({Role.ADMIN, Role.OWNER})
_OWNERS = frozenset({Role.OWNER})

CAPABILITY_MATRIX: dict[Capability, frozenset[Role]] = {
    Capability.CONTENT_VIEW: _EVERYONE,
    Capability.CONTENT_CREATE: _EVERYONE,
    Capability.CONTENT_EDIT: _EDITORS,
    Capability.CONTENT_DELETE: _ADMINS,
    Capability.CONTENT_PUBLISH: _ADMINS,
    Capability.MEDIA_VIEW: _EVERYONE,
    Capability.MEDIA_UPLOAD: _EVERYONE,
    Capability.MEDIA_DELETE: _EDITORS,
    Capability.USERS_VIEW: _ADMINS,
    Capability.USERS_CREATE: _ADMINS,
    Capability.USERS_EDIT: _ADMINS,
    Capability.USERS_DELETE: _OWNERS,
    Capability.USERS_MANAGE: _ADMINS,
    Capability.SETTINGS_VIEW: _ADMINS,
    Capability.SETTINGS_EDIT: _OWNERS,
}


class ApiKeyPermission(str, Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


# Higher levels include lower ones.
API_KEY_LEVEL_HIERARCHY: dict[ApiKeyPermission, frozenset[ApiKeyPermission]] = {
    ApiKeyPermission.ADMIN: frozenset(ApiKeyPermission),
    ApiKeyPermission.WRITE: frozenset({ApiKeyPermission.WRITE, ApiKeyPermission.READ}),
    ApiKeyPermission.READ: frozenset({ApiKeyPermission.READ}),
}


def parse_role(value: str | Role | None) -> Role | None:
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).upper()) if value else None
    except ValueError:
        return None


def has_permission(role: str | Role | None, required: str | Role) -> bool:
    """True if `role` ranks at or above `required`."""
    granted = parse_role(role)
    needed = parse_role(required)
    if granted is None or needed is None:
        return False
    return ROLE_RANK[granted] >= ROLE_RANK[needed]


def can(role: str | Role | None, capability: Capability) -> bool:
    """Set-membership test of `role` against the capability matrix."""
    granted = parse_role(role)
    if granted is None:
        return False
    return granted in CAPABILITY_MATRIX.get(capability, frozenset())


def is_owner(role: str | Role | None) -> bool:
    return parse_role(role) is Role.OWNER


def api_key_allows(granted: str | ApiKeyPermission | None, required: ApiKeyPermission) -> bool:
    """`admin` implies everything, `write` implies `read`."""
    try:
        level = ApiKeyPermission(granted) if granted else None
    except ValueError:
        return False
    if level is None:
        return False
    return required in API_KEY_LEVEL_HIERARCHY[level]
