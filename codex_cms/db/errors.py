"""
Storage error translation.

Store methods run inside `storage_errors(...)`. Unique-constraint rejections
become Conflict, foreign-key rejections become NotFound, and every other
database error becomes StorageFailure. Domain errors raised inside the block
pass through untouched.
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from codex_cms.kernel.errors import CMSError, Conflict, NotFound, StorageFailure
from codex_cms.monitoring import get_metrics

logger = structlog.get_logger()

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

_CONSTRAINT_RE = re.compile(r'constraint "([^"]+)"')

# Unique constraints that carry a caller-facing conflict message.
CONFLICT_MESSAGES: dict[str, str] = {
    "uq_pages_slug_locale": "A page with this slug already exists for this locale",
    "uq_blog_posts_slug_locale": "A blog post with this slug already exists for this locale",
    "uq_case_studies_slug_locale": "A case study with this slug already exists for this locale",
    "uq_services_slug_locale": "A service with this slug already exists for this locale",
    "uq_users_email": "A user with this email already exists",
    "uq_blocks_page_order": "Another block of this page already uses this order",
    "uq_blocks_post_order": "Another block of this blog post already uses this order",
    "uq_blocks_case_order": "Another block of this case study already uses this order",
}


def _driver_errors(exc: IntegrityError) -> list[Any]:
    orig = getattr(exc, "orig", None)
    return [candidate for candidate in (orig, getattr(orig, "__cause__", None)) if candidate is not None]


def constraint_name(exc: IntegrityError) -> str | None:
    """Name of the violated constraint, from the driver error or its message."""
    for candidate in _driver_errors(exc):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return str(name)
    match = _CONSTRAINT_RE.search(str(getattr(exc, "orig", None) or exc))
    return match.group(1) if match else None


def sqlstate(exc: IntegrityError) -> str | None:
    for candidate in _driver_errors(exc):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def translate_integrity_error(exc: IntegrityError, *, operation: str) -> CMSError:
    name = constraint_name(exc)
    state = sqlstate(exc)

    if state == UNIQUE_VIOLATION or (name and name.startswith("uq_")):
        return Conflict(
            message=CONFLICT_MESSAGES.get(name or "", "Resource already exists"),
            meta={"constraint": name} if name else None,
        )
    if state == FOREIGN_KEY_VIOLATION or (name and name.endswith("_fkey")):
        return NotFound(message="Referenced resource not found", meta={"constraint": name} if name else None)

    get_metrics().track_storage_failure(operation)
    return StorageFailure(operation=operation)


@asynccontextmanager
async def storage_errors(operation: str, **context: Any) -> AsyncIterator[None]:
    """
    Translate database errors raised inside the block.

    Usage:
        async with storage_errors("create_page", slug=slug):
            async with db.session() as session:
                ...
    """
    try:
        yield
    except CMSError:
        raise
    except IntegrityError as exc:
        translated = translate_integrity_error(exc, operation=operation)
        if isinstance(translated, StorageFailure):
            logger.error(
                "Storage constraint violation",
                operation=operation,
                constraint=constraint_name(exc),
                error=str(exc.orig or exc),
                **context,
            )
        else:
            logger.info(
                "Write rejected by constraint",
                operation=operation,
                constraint=constraint_name(exc),
                code=translated.code,
                **context,
            )
        raise translated from exc
    except (SQLAlchemyError, OSError) as exc:
        get_metrics().track_storage_failure(operation)
        logger.error(
            "Storage operation failed",
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
            **context,
        )
        raise StorageFailure(operation=operation) from exc
