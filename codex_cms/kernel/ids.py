from __future__ import annotations

import re
from uuid import uuid4

# Every stored row gets an opaque `{prefix}_{uuidhex}` id; the prefix names the table.
ID_PREFIXES: dict[str, str] = {
    "page": "pg",
    "blog_post": "post",
    "case_study": "case",
    "service": "svc",
    "block": "blk",
    "user": "usr",
    "api_key": "key",
}

_PREFIX_RE = re.compile(r"^[a-z][a-z0-9]{1,24}$")


def new_prefixed_id(prefix: str) -> str:
    if not _PREFIX_RE.fullmatch(prefix):
        raise ValueError(f"Invalid id prefix {prefix!r}")
    return f"{prefix}_{uuid4().hex}"


def new_id(resource: str) -> str:
    """New id for a row of `resource` (a key of ID_PREFIXES)."""
    try:
        prefix = ID_PREFIXES[resource]
    except KeyError:
        raise ValueError(f"Unknown resource {resource!r}") from None
    return new_prefixed_id(prefix)


def id_factory(resource: str):
    """Column default producing ids for `resource`."""

    def _new() -> str:
        return new_id(resource)

    return _new
