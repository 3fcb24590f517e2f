"""Vault HTTP client — KV records, Okta auth method, identity and token APIs.

Async client for the subset of the HashiCorp Vault HTTP API the guardian uses:
- GET/PUT /v1/<path> — generic logical read / write (KV records)
- /v1/auth/<okta>/users/<name> — Okta auth-method user registry
- /v1/auth/<okta>/login/<name> — Okta password login
- /v1/identity/lookup/entity — entity → aliases
- /v1/auth/token/* — token create / lookup-self
- /v1/auth/approle/login — AppRole SecretID exchange
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from vault_guardian.errors.definitions import StoreUnavailableError, VaultResponseError

if TYPE_CHECKING:
    from vault_guardian.config.settings import VaultConfig

_TOKEN_HEADER = "X-Vault-Token"


class VaultClient:
    """Async HTTP client for the Vault logical API.

    One client is built per request from the current guardian Config, so the
    token it carries is always the latest service credential.

    Usage::

        vault = VaultClient(config, token=cfg.service_credential)
        await vault.connect()
        try:
            record = await vault.read("keys/alice@example.com")
        finally:
            await vault.close()
    """

    def __init__(
        self,
        config: VaultConfig,
        *,
        token: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Vault client.

        Args:
            config: Vault settings (address, mounts, timeout).
            token: Vault token sent with every request; may be empty for
                unauthenticated endpoints such as logins.
            transport: Optional httpx transport (tests use ``MockTransport``).
        """
        self._config = config
        self._token = token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._token:
            headers[_TOKEN_HEADER] = self._token
        self._client = httpx.AsyncClient(
            base_url=self._config.address.rstrip("/") + "/v1",
            headers=headers,
            timeout=self._config.timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    @property
    def token(self) -> str:
        """The Vault token this client authenticates with."""
        return self._token

    @property
    def config(self) -> VaultConfig:
        """Vault settings (mount layout, role names)."""
        return self._config

    # ------------------------------------------------------------------
    # Logical API
    # ------------------------------------------------------------------

    async def read(self, path: str) -> dict[str, Any] | None:
        """Read a logical path.

        Returns:
            The decoded response body, or None if Vault returned 404.

        Raises:
            StoreUnavailableError: On transport failure or a 5xx response.
            VaultResponseError: On any other error status.
        """
        return await self._request("GET", path)

    async def write(self, path: str, data: dict[str, Any]) -> dict[str, Any] | None:
        """Write *data* to a logical path.

        Returns:
            The decoded response body, or None for an empty (204) response.
        """
        return await self._request("PUT", path, json=data)

    # ------------------------------------------------------------------
    # Auth method helpers
    # ------------------------------------------------------------------

    async def okta_read_user(self, username: str) -> dict[str, Any] | None:
        """Read a user from the Okta auth method's local registry."""
        return await self.read(f"auth/{self._config.okta_mount}/users/{username}")

    async def okta_write_user(self, username: str, groups: list[str]) -> None:
        """Register *username* in the Okta auth method with *groups*."""
        await self.write(
            f"auth/{self._config.okta_mount}/users/{username}",
            {"groups": groups},
        )

    async def okta_login(self, username: str, password: str) -> dict[str, Any]:
        """Log in through the Okta auth method and return the ``auth`` block.

        Raises:
            VaultResponseError: If Vault or Okta rejects the credentials.
        """
        resp = await self.write(
            f"auth/{self._config.okta_mount}/login/{username}",
            {"password": password},
        )
        return _auth_block(resp, "okta login")

    async def approle_login(self, role_id: str, secret_id: str) -> dict[str, Any]:
        """Exchange an AppRole SecretID for a token and return the ``auth`` block."""
        resp = await self.write(
            "auth/approle/login",
            {"role_id": role_id, "secret_id": secret_id},
        )
        return _auth_block(resp, "approle login")

    # ------------------------------------------------------------------
    # Token / identity helpers
    # ------------------------------------------------------------------

    async def create_token(
        self,
        role: str,
        *,
        policies: list[str],
        num_uses: int,
        meta: dict[str, str],
    ) -> dict[str, Any]:
        """Create a token against a token role and return the ``auth`` block."""
        resp = await self.write(
            f"auth/token/create/{role}",
            {"policies": policies, "num_uses": num_uses, "meta": meta},
        )
        return _auth_block(resp, "token create")

    async def lookup_self(self, token: str) -> dict[str, Any] | None:
        """Look up *token* by authenticating with it.

        This is a request made with *token* itself, so Vault spends one of
        its uses. A single-use token is revoked by Vault once this returns.

        Raises:
            VaultResponseError: If Vault does not accept *token*.
        """
        resp = await self._request("GET", "auth/token/lookup-self", token=token)
        return _data_block(resp)

    async def lookup_entity(self, entity_id: str) -> dict[str, Any] | None:
        """Look up an identity entity by id."""
        resp = await self.write("identity/lookup/entity", {"id": entity_id})
        return _data_block(resp)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not connected."""
        if self._client is None:
            msg = "Vault client not connected. Call connect() first."
            raise StoreUnavailableError(msg, status_code=500)
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> dict[str, Any] | None:
        client = self._ensure_connected()
        url = "/" + path.lstrip("/")
        headers = {_TOKEN_HEADER: token} if token is not None else None
        try:
            response = await client.request(method, url, json=json, headers=headers)
        except httpx.HTTPError as exc:
            msg = f"Vault {method} {path} failed"
            raise StoreUnavailableError(msg, cause=exc) from exc

        if response.status_code == 404:
            return None
        if response.status_code == 204 or not response.content:
            return None
        if response.status_code >= 500:
            msg = f"Vault {method} {path} returned {response.status_code}"
            raise StoreUnavailableError(msg, cause="; ".join(_errors(response)))
        if response.status_code >= 400:
            raise VaultResponseError(
                f"Vault {method} {path} returned {response.status_code}",
                vault_status=response.status_code,
                errors=_errors(response),
            )
        return response.json()


def _errors(response: httpx.Response) -> list[str]:
    """Extract the ``errors`` list from a Vault error body."""
    try:
        body = response.json()
    except ValueError:
        return [response.text] if response.text else []
    errors = body.get("errors") if isinstance(body, dict) else None
    return [str(e) for e in errors] if errors else []


def _auth_block(resp: dict[str, Any] | None, what: str) -> dict[str, Any]:
    auth = resp.get("auth") if resp else None
    if not auth or not auth.get("client_token"):
        msg = f"Vault {what} returned no auth info"
        raise StoreUnavailableError(msg, status_code=502)
    return auth


def _data_block(resp: dict[str, Any] | None) -> dict[str, Any] | None:
    if resp is None:
        return None
    data = resp.get("data")
    return data if isinstance(data, dict) else None
