"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from vault_guardian import __version__
from vault_guardian.api.middleware.cors import setup_cors
from vault_guardian.api.routes import router as guardian_router
from vault_guardian.api.schemas import ErrorResponse
from vault_guardian.config.settings import AppConfig
from vault_guardian.engine.client import GuardianEngine
from vault_guardian.errors.guardian_errors import GuardianError
from vault_guardian.metrics.collector import GuardianMetrics
from vault_guardian.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect the config storage on startup and release it on shutdown."""
    config: AppConfig = app.state.config
    engine = GuardianEngine(
        config,
        transport=app.state.transport,
        metrics=app.state.metrics,
    )
    try:
        await engine.initialize()
        app.state.engine = engine
        logger.info("Guardian engine initialized (storage=%s)", config.storage.engine)
        yield
    finally:
        await engine.close()
        logger.info("Guardian engine shut down")


def create_app(
    *,
    config: AppConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, settings are read from
            ``GUARDIAN_*`` environment variables and the optional YAML file.
        transport: Optional httpx transport for every outbound Vault and Okta
            call (tests use ``MockTransport``).
    """
    if config is None:
        config = AppConfig()

    logging.basicConfig(level=logging.DEBUG if config.debug else logging.INFO)

    app = FastAPI(
        title="vault-guardian",
        version=__version__,
        description="Okta-authenticated Ethereum key custody on HashiCorp Vault",
        lifespan=_lifespan,
    )

    app.state.config = config
    app.state.transport = transport
    app.state.metrics = GuardianMetrics()

    # -- Middleware --
    setup_cors(app)
    if config.metrics.enabled:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    # -- Error handler --
    @app.exception_handler(GuardianError)
    async def _guardian_error_handler(request: Request, exc: GuardianError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(code=exc.code, message=exc.message).model_dump(),
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> dict[str, str]:
        engine: GuardianEngine | None = getattr(app.state, "engine", None)
        if engine is None:
            return {"status": "starting"}
        return {"status": "ok", **await engine.health_check()}

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(app.state.metrics.registry),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    app.include_router(guardian_router)

    return app
