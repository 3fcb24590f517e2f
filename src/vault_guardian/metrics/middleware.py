"""Prometheus HTTP request metrics middleware for FastAPI.

Tracks:
- ``guardian_http_requests_total`` (counter) — requests by method, route, status
- ``guardian_http_request_duration_seconds`` (histogram) — duration by method, route

Routes are labelled by their template so usernames in paths never become
label values. The ``/metrics`` scrape itself is not counted.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Callable

    from prometheus_client import CollectorRegistry
    from starlette.requests import Request
    from starlette.responses import Response

_SKIP_PATHS = frozenset({"/metrics"})


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that records request count and duration."""

    def __init__(self, app: object, *, registry: CollectorRegistry) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._request_count = Counter(
            "guardian_http_requests_total",
            "Total HTTP requests",
            ("method", "route", "status_code"),
            registry=registry,
        )
        self._request_duration = Histogram(
            "guardian_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ("method", "route"),
            registry=registry,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[type-arg]
        """Wrap each request with timing and counting."""
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start = time.monotonic()
        response: Response = await call_next(request)
        duration = time.monotonic() - start

        route = _route_label(request)
        self._request_count.labels(
            method=request.method,
            route=route,
            status_code=str(response.status_code),
        ).inc()
        self._request_duration.labels(method=request.method, route=route).observe(duration)
        return response
