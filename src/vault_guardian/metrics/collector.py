"""Metrics collector — Prometheus counters and histograms.

- ``guardian_operation_total`` counter-vec (operation, outcome)
- ``guardian_operation_duration_seconds`` histogram-vec (operation)
- ``guardian_provisioned_users_total`` counter
- ``guardian_token_rotations_total`` counter
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator

_PREFIX = "guardian"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`GuardianMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class GuardianMetrics:
    """High-level guardian metrics.

    Operation names are the exposed operations: ``login``, ``authorize``,
    ``sign``, ``sign_tx`` and ``get_address``.
    """

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._operations = self._collector.counter(
            f"{_PREFIX}_operation_total",
            "Guardian operations by outcome",
            ("operation", "outcome"),
        )
        self._durations = self._collector.histogram(
            f"{_PREFIX}_operation_duration_seconds",
            "Duration of guardian operations",
            ("operation",),
        )
        self._provisioned = self._collector.counter(
            f"{_PREFIX}_provisioned_users_total",
            "Users provisioned with a new key on first login",
        )
        self._rotations = self._collector.counter(
            f"{_PREFIX}_token_rotations_total",
            "Single-use tokens replaced after a privileged operation",
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def record_provisioned(self) -> None:
        self._provisioned.inc()

    def record_rotation(self) -> None:
        self._rotations.inc()

    @contextmanager
    def track(self, operation: str) -> Iterator[None]:
        """Track duration and outcome (``ok`` / ``error``) of an operation."""
        start = time.monotonic()
        outcome = "error"
        try:
            yield
            outcome = "ok"
        finally:
            self._durations.labels(operation=operation).observe(time.monotonic() - start)
            self._operations.labels(operation=operation, outcome=outcome).inc()
