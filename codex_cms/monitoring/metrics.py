"""
Prometheus Metrics

Defines and exports metrics for the content API.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

import structlog
from prometheus_client import Counter, Histogram, Info

logger = structlog.get_logger()

# Singleton metrics instance
_metrics: "Metrics | None" = None


class Metrics:
    """
    Prometheus metrics for the content API.

    Tracks:
    - HTTP request latency and counts
    - Content pipeline outcomes per entity kind and operation
    - Storage failures
    - DNS cache hits and misses
    """

    def __init__(self):
        self.http_requests_total = Counter(
            "codex_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
        )

        self.http_request_duration_seconds = Histogram(
            "codex_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        )

        self.content_operations_total = Counter(
            "codex_content_operations_total",
            "Content pipeline operations by outcome",
            ["kind", "operation", "outcome"],  # outcome: ok | error code
        )

        self.content_operation_duration_seconds = Histogram(
            "codex_content_operation_duration_seconds",
            "Content pipeline operation duration in seconds",
            ["kind", "operation"],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
        )

        self.storage_failures_total = Counter(
            "codex_storage_failures_total",
            "Storage errors translated to storage.failure",
            ["operation"],
        )

        self.dns_cache_lookups_total = Counter(
            "codex_dns_cache_lookups_total",
            "DNS cache lookups",
            ["result"],  # hit | miss | error
        )

        self.build_info = Info(
            "codex_build_info",
            "Build information",
        )

        logger.info("Prometheus metrics initialized")

    def set_build_info(self, version: str, commit: str | None = None) -> None:
        """Set build information."""
        self.build_info.info({
            "version": version,
            "commit": commit or "unknown",
        })

    def track_http_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Track an HTTP request."""
        self.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()

        self.http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

    def track_content_operation(
        self,
        kind: str,
        operation: str,
        outcome: str,
        duration: float,
    ) -> None:
        self.content_operations_total.labels(kind=kind, operation=operation, outcome=outcome).inc()
        self.content_operation_duration_seconds.labels(kind=kind, operation=operation).observe(duration)

    def track_storage_failure(self, operation: str) -> None:
        self.storage_failures_total.labels(operation=operation).inc()

    def track_dns_lookup(self, result: str) -> None:
        self.dns_cache_lookups_total.labels(result=result).inc()

    @contextmanager
    def time_content_operation(self, kind: str, operation: str) -> Iterator[None]:
        """Time a pipeline operation and count it under its outcome code."""
        start = time.perf_counter()
        outcome = "ok"
        try:
            yield
        except Exception as exc:
            outcome = getattr(exc, "code", "internal.unhandled")
            raise
        finally:
            self.track_content_operation(kind, operation, outcome, time.perf_counter() - start)


def get_metrics() -> Metrics:
    """Get or create the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = Metrics()
    return _metrics
