"""Tests for the FastAPI application factory, base routes and error handler."""

from __future__ import annotations

from fastapi.testclient import TestClient

from vault_guardian.api.app import create_app
from vault_guardian.config.settings import MetricsConfig
from vault_guardian.engine.client import GuardianEngine
from vault_guardian.errors.definitions import KeyNotFoundError


class TestCreateApp:
    def test_state(self, app_config, transport):
        app = create_app(config=app_config, transport=transport)
        assert app.state.config is app_config
        assert app.state.transport is transport
        assert app.title == "vault-guardian"

    def test_lifespan_initializes_engine(self, client):
        engine = client.app.state.engine
        assert isinstance(engine, GuardianEngine)
        assert engine.is_initialized
        assert engine.metrics is client.app.state.metrics

    def test_routes_mounted(self, client):
        paths = {route.path for route in client.app.routes}
        for path in (
            "/v1/guardian/login",
            "/v1/guardian/authorize",
            "/v1/guardian/sign",
            "/v1/guardian/sign-tx",
            "/health",
            "/metrics",
        ):
            assert path in paths


class TestBaseRoutes:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "engine": "ok", "storage": "ok"}

    def test_metrics(self, client):
        client.get("/health")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert "guardian_http_requests_total" in resp.text

    def test_metrics_middleware_disabled(self, app_config, transport):
        config = app_config.model_copy(update={"metrics": MetricsConfig(enabled=False)})
        with TestClient(create_app(config=config, transport=transport)) as client:
            client.get("/health")
            assert "guardian_http_requests_total" not in client.get("/metrics").text


class TestErrorHandler:
    def test_guardian_error_body(self, app_config, transport):
        app = create_app(config=app_config, transport=transport)

        @app.get("/boom")
        async def boom():
            raise KeyNotFoundError("no key record for alice", cause="record missing")

        with TestClient(app) as client:
            resp = client.get("/boom")
        assert resp.status_code == 404
        assert resp.json() == {
            "code": "key-not-found",
            "message": "no key record for alice\n\nrecord missing",
        }

    def test_incomplete_config(self, client):
        resp = client.post(
            "/v1/guardian/login",
            json={"okta_username": "alice@acme.com", "okta_password": "pw"},
        )
        assert resp.status_code == 412
        assert resp.json()["code"] == "config-incomplete"
