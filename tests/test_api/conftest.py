"""Fixtures for HTTP API tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from vault_guardian.api.app import create_app

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def client(app_config, transport) -> Iterator[TestClient]:
    """Provide a started TestClient wired to the fake Vault and Okta."""
    app = create_app(config=app_config, transport=transport)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def authorized_client(client) -> TestClient:
    """A client whose guardian Config has been set through the authorize route."""
    resp = client.post(
        "/v1/guardian/authorize",
        json={"secret_id": "secret-id-1", "okta_url": "acme", "okta_token": "okta-api-token"},
        headers={"X-Guardian-Admin-Token": "admin-secret"},
    )
    assert resp.status_code == 200
    return client
