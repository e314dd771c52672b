from __future__ import annotations

import re
from typing import Any


_ERROR_CODE_RE = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")


class CMSError(Exception):
    """Base typed error for the content core.

    Goals:
    - Stable `code` for programmatic handling across clients.
    - Human-readable `message` for UI surfaces.
    - Optional `meta` payload for debugging (safe-to-expose only).
    """

    def __init__(
        self,
        *,
        code: str,
        message: str,
        status_code: int = 500,
        meta: dict[str, Any] | None = None,
    ) -> None:
        if not _ERROR_CODE_RE.fullmatch(code):
            raise ValueError(
                "Invalid error code. Expected dot-separated lowercase tokens, "
                f"got: {code!r}"
            )
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = int(status_code)
        self.meta = dict(meta or {})

    def to_public_dict(self, *, request_id: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            # Keep `detail` for compatibility with FastAPI error surfaces.
            "detail": self.message,
            "code": self.code,
        }
        if request_id:
            payload["request_id"] = request_id
        if self.meta:
            payload["meta"] = self.meta
        return payload


class AuthenticationRequired(CMSError):
    def __init__(
        self,
        *,
        message: str = "Authentication required",
        code: str = "auth.unauthenticated",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, status_code=401, meta=meta)


class AuthorizationDenied(CMSError):
    def __init__(
        self,
        *,
        message: str = "Insufficient permissions",
        code: str = "auth.forbidden",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, status_code=403, meta=meta)


class ValidationFailed(CMSError):
    """Field-level input violations. `meta["errors"]` lists `{field, message, code}`."""

    def __init__(
        self,
        *,
        errors: list[dict[str, str]],
        message: str = "Validation failed",
        code: str = "request.validation_failed",
    ):
        super().__init__(code=code, message=message, status_code=422, meta={"errors": errors})
        self.errors = errors


class NotFound(CMSError):
    def __init__(self, *, message: str = "Not found", code: str = "resource.not_found", meta: dict[str, Any] | None = None):
        super().__init__(code=code, message=message, status_code=404, meta=meta)


class Conflict(CMSError):
    def __init__(
        self,
        *,
        message: str = "Conflict",
        code: str = "resource.conflict",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, status_code=409, meta=meta)


class StorageFailure(CMSError):
    """The persistence layer errored. The public message never carries internal detail."""

    def __init__(
        self,
        *,
        operation: str,
        message: str = "Operation failed",
        code: str = "storage.failure",
    ):
        super().__init__(code=code, message=message, status_code=500)
        self.operation = operation
