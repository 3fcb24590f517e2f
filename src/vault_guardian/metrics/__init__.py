"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from vault_guardian.metrics.collector import GuardianMetrics, MetricsCollector

__all__ = ["GuardianMetrics", "MetricsCollector"]
