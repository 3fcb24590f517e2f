"""Shared test fixtures for the vault-guardian test suite.

Vault and Okta are replaced by :class:`FakeVault`, a stateful handler served
through ``httpx.MockTransport``. It implements just enough of both HTTP APIs
for the guardian's flows and records every call for ordering assertions.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from vault_guardian.config.settings import (
    AppConfig,
    SigningConfig,
    StorageConfig,
    StorageEngine,
    VaultConfig,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

VAULT_ADDRESS = "http://vault.test:8200"
VAULT_HOST = "vault.test"
OKTA_ORG = "acme"
OKTA_HOST = "acme.okta.com"

BOOTSTRAP_TOKEN = "bootstrap-token"  # noqa: S105
SERVICE_TOKEN = "svc-token"  # noqa: S105
OKTA_API_TOKEN = "okta-api-token"  # noqa: S105
ADMIN_TOKEN = "admin-secret"  # noqa: S105
SECRET_ID = "secret-id-1"
ZERO_GAS_CHAIN = 1337


# ---------------------------------------------------------------------------
# Fake Vault + Okta
# ---------------------------------------------------------------------------


def _errors(status: int, *messages: str) -> httpx.Response:
    return httpx.Response(status, json={"errors": list(messages)})


class FakeVault:
    """In-memory stand-in for the Vault and Okta HTTP APIs."""

    def __init__(self) -> None:
        self.kv: dict[str, dict[str, Any]] = {}
        self.registry: dict[str, list[str]] = {}
        self.okta_org: set[str] = set()
        self.passwords: dict[str, str] = {}
        self.tokens: dict[str, dict[str, Any]] = {}
        self.entities: dict[str, list[str]] = {}
        self.secret_ids: dict[str, str] = {SECRET_ID: SERVICE_TOKEN}
        # accessors of tokens whose last use was spent
        self.spent: list[str] = []
        self.calls: list[tuple[str, str]] = []
        # "path-prefix" or "METHOD path-prefix" -> status for every matching request
        self.failures: dict[str, int] = {}
        self.okta_down = False
        self._seq = itertools.count(1)

    # -- Seeding helpers -------------------------------------------------

    def add_okta_user(self, username: str, password: str) -> None:
        self.okta_org.add(username)
        self.passwords[username] = password

    def mint_token(
        self, username: str, *, entity_id: str = "", uses: int = 1
    ) -> tuple[str, str]:
        n = next(self._seq)
        token, accessor = f"s.token{n}", f"accessor{n}"
        self.tokens[token] = {
            "accessor": accessor,
            "meta": {"name": username} if username else None,
            "entity_id": entity_id,
            "num_uses": uses,
        }
        return token, accessor

    def key_record(self, username: str) -> dict[str, Any] | None:
        return self.kv.get(f"keys/{username}")

    def accessor_for(self, token: str) -> str:
        return self.tokens[token]["accessor"]

    def paths(self) -> list[str]:
        return [path for _, path in self.calls]

    # -- Dispatch ----------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == OKTA_HOST:
            return self._okta(request)
        if request.url.host != VAULT_HOST:
            return httpx.Response(502)

        path = request.url.path.removeprefix("/v1/")
        self.calls.append((request.method, path))
        for prefix, status in self.failures.items():
            if path.startswith(prefix) or f"{request.method} {path}".startswith(prefix):
                return _errors(status, f"injected failure on {prefix}")

        data = json.loads(request.content) if request.content else {}
        token = request.headers.get("X-Vault-Token", "")

        if path.startswith("auth/okta/login/"):
            return self._okta_login(path.rsplit("/", 1)[1], data)
        if path == "auth/approle/login":
            return self._approle_login(data)
        if path == "auth/token/lookup-self":
            return self._lookup_self(token)

        if token not in (SERVICE_TOKEN, BOOTSTRAP_TOKEN):
            return _errors(403, "permission denied")

        if path.startswith("auth/okta/users/"):
            return self._okta_user(request.method, path.rsplit("/", 1)[1], data)
        if path.startswith("auth/token/create/"):
            return self._create_token(data)
        if path == "identity/lookup/entity":
            return self._lookup_entity(data)
        return self._kv(request.method, path, data)

    # -- Vault endpoints -----------------------------------------------------

    def _okta_user(self, method: str, username: str, data: dict[str, Any]) -> httpx.Response:
        if method == "GET":
            if username not in self.registry:
                return _errors(404)
            return httpx.Response(200, json={"data": {"groups": self.registry[username]}})
        self.registry[username] = list(data.get("groups", []))
        return httpx.Response(204)

    def _okta_login(self, username: str, data: dict[str, Any]) -> httpx.Response:
        if self.passwords.get(username) != data.get("password"):
            return _errors(400, "okta auth failed")
        return httpx.Response(200, json={"auth": {"client_token": f"okta-login-{username}"}})

    def _approle_login(self, data: dict[str, Any]) -> httpx.Response:
        token = self.secret_ids.get(data.get("secret_id", ""))
        if data.get("role_id") != "guardian-role-id" or token is None:
            return _errors(400, "invalid secret id")
        return httpx.Response(200, json={"auth": {"client_token": token}})

    def _create_token(self, data: dict[str, Any]) -> httpx.Response:
        assert data["num_uses"] == 1
        assert data["policies"] == ["enduser"]
        token, accessor = self.mint_token(data["meta"]["name"], uses=data["num_uses"])
        return httpx.Response(
            200, json={"auth": {"client_token": token, "accessor": accessor}}
        )

    def _lookup_self(self, token: str) -> httpx.Response:
        info = self.tokens.get(token)
        if info is None:
            return _errors(403, "permission denied")
        info["num_uses"] -= 1
        if info["num_uses"] == 0:
            # Vault revokes a token once its last use is spent
            del self.tokens[token]
            self.spent.append(info["accessor"])
        return httpx.Response(200, json={"data": dict(info)})

    def _lookup_entity(self, data: dict[str, Any]) -> httpx.Response:
        aliases = self.entities.get(data.get("id", ""))
        if aliases is None:
            return httpx.Response(204)
        return httpx.Response(
            200, json={"data": {"aliases": [{"name": name} for name in aliases]}}
        )

    def _kv(self, method: str, path: str, data: dict[str, Any]) -> httpx.Response:
        if method == "GET":
            if path not in self.kv:
                return _errors(404)
            return httpx.Response(200, json={"data": self.kv[path]})
        self.kv[path] = data
        return httpx.Response(204)

    # -- Okta API ------------------------------------------------------------

    def _okta(self, request: httpx.Request) -> httpx.Response:
        if self.okta_down:
            return httpx.Response(500, json={"errorSummary": "okta unavailable"})
        if request.headers.get("Authorization") != f"SSWS {OKTA_API_TOKEN}":
            return httpx.Response(401, json={"errorSummary": "Invalid token provided"})
        login = request.url.path.removeprefix("/api/v1/users/")
        if login in self.okta_org:
            return httpx.Response(200, json={"id": "00u1", "profile": {"login": login}})
        return httpx.Response(404, json={"errorSummary": "Not found"})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_vault() -> FakeVault:
    return FakeVault()


@pytest.fixture
def transport(fake_vault) -> httpx.MockTransport:
    """Serve FakeVault, yielding to the event loop once per request like real I/O."""

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0)
        return fake_vault(request)

    return httpx.MockTransport(handler)


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig with in-memory Config storage."""
    return AppConfig(
        debug=True,
        admin_token=ADMIN_TOKEN,
        vault=VaultConfig(address=VAULT_ADDRESS, token=BOOTSTRAP_TOKEN),
        storage=StorageConfig(engine=StorageEngine.MEMORY),
        signing=SigningConfig(zero_gas_price_chain_ids=[ZERO_GAS_CHAIN]),
    )


@pytest.fixture
def guardian_config():
    from vault_guardian.engine.services.config_manager import GuardianConfig

    return GuardianConfig(
        service_credential=SERVICE_TOKEN,
        identity_provider_url=OKTA_ORG,
        identity_provider_token=OKTA_API_TOKEN,
    )


@pytest.fixture
async def engine(app_config, transport, guardian_config) -> AsyncIterator:
    """Provide an initialized engine whose Config record is already complete."""
    from vault_guardian.engine.client import GuardianEngine

    eng = GuardianEngine(app_config, transport=transport)
    await eng.initialize()
    await eng.config_manager.save(guardian_config)
    yield eng
    await eng.close()


@pytest.fixture
def service(engine):
    from vault_guardian.engine.services.guardian_service import GuardianService

    return GuardianService(engine)


@pytest.fixture
def redeem(engine):
    """Return a coroutine function that redeems a session token into a CallerContext."""
    from vault_guardian.engine.services.key_custodian import KeyCustodian
    from vault_guardian.engine.services.token_issuer import TokenIssuer

    async def _redeem(token: str):
        async with engine.vault_session(SERVICE_TOKEN) as vault:
            return await TokenIssuer(vault, KeyCustodian(vault)).redeem_session_token(token)

    return _redeem
