"""Tests for CORS middleware configuration."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from vault_guardian.api.middleware.cors import setup_cors


def _app() -> FastAPI:
    app = FastAPI()
    setup_cors(app)

    @app.post("/test")
    async def test_route():
        return {"ok": True}

    return app


class TestCORSMiddleware:
    def test_preflight_allows_token_headers(self):
        resp = TestClient(_app()).options(
            "/test",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "x-vault-token, x-guardian-admin-token",
            },
        )
        assert resp.status_code == 200
        allowed = resp.headers["access-control-allow-headers"].lower()
        assert "x-vault-token" in allowed
        assert "x-guardian-admin-token" in allowed

    def test_preflight_rejects_other_methods(self):
        resp = TestClient(_app()).options(
            "/test",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "DELETE",
            },
        )
        assert resp.status_code == 400
