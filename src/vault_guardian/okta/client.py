"""Okta management API client — user existence checks.

The guardian only asks Okta one question directly: does this login belong to
the organization? Password verification goes through Vault's Okta auth method
instead (see :meth:`VaultClient.okta_login`).
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from vault_guardian.errors.definitions import IdentityProviderError


def org_base_url(okta_url: str) -> str:
    """Turn a configured Okta URL into an API base URL.

    A bare organization name (``acme``) maps to ``https://acme.okta.com``;
    anything that already carries a scheme is used unchanged.
    """
    okta_url = okta_url.strip().rstrip("/")
    if "://" in okta_url:
        return okta_url
    return f"https://{okta_url}.okta.com"


class OktaClient:
    """Async HTTP client for the Okta Users API.

    Usage::

        okta = OktaClient("acme", api_token)
        await okta.connect()
        try:
            exists = await okta.user_exists("alice@acme.com")
        finally:
            await okta.close()
    """

    def __init__(
        self,
        okta_url: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = org_base_url(okta_url)
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Accept": "application/json",
                "Authorization": f"SSWS {self._api_token}",
            },
            timeout=self._timeout,
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
    def base_url(self) -> str:
        """The resolved Okta organization URL."""
        return self._base_url

    async def user_exists(self, login: str) -> bool:
        """Check whether *login* is a user of the Okta organization.

        Raises:
            IdentityProviderError: On transport failure or an unexpected status.
        """
        if self._client is None:
            msg = "Okta client not connected. Call connect() first."
            raise IdentityProviderError(msg, status_code=500)

        try:
            response = await self._client.get(f"/api/v1/users/{quote(login, safe='@')}")
        except httpx.HTTPError as exc:
            msg = "Okta user lookup failed"
            raise IdentityProviderError(msg, cause=exc) from exc

        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        msg = f"Okta user lookup returned {response.status_code}"
        raise IdentityProviderError(msg, cause=_error_summary(response))


def _error_summary(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("errorSummary", ""))
    return ""
