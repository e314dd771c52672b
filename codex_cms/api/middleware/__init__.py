"""API middleware modules."""

from .security import (
    RequestIDMiddleware,
    RequestMetricsMiddleware,
    SecurityHeadersMiddleware,
    get_cors_origins,
)

__all__ = [
    "RequestIDMiddleware",
    "RequestMetricsMiddleware",
    "SecurityHeadersMiddleware",
    "get_cors_origins",
]
