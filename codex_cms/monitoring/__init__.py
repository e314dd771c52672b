"""Prometheus metrics."""

from codex_cms.monitoring.metrics import Metrics, get_metrics

__all__ = ["Metrics", "get_metrics"]
