"""Vault KV storage backend.

Records are stored under ``<config_mount>/<key>`` in a KV version 1 secrets
engine, authenticated with the bootstrap token from settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from vault_guardian.vault.client import VaultClient

if TYPE_CHECKING:
    import httpx

    from vault_guardian.config.settings import VaultConfig


class VaultStorage:
    """Record storage on a Vault KV mount."""

    def __init__(
        self,
        config: VaultConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client = VaultClient(config, token=config.token, transport=transport)

    async def connect(self) -> None:
        await self._client.connect()

    async def close(self) -> None:
        await self._client.close()

    async def get(self, key: str) -> dict[str, Any] | None:
        resp = await self._client.read(self._path(key))
        if resp is None:
            return None
        data = resp.get("data")
        return data if isinstance(data, dict) else None

    async def put(self, key: str, value: dict[str, Any]) -> None:
        await self._client.write(self._path(key), value)

    def _path(self, key: str) -> str:
        return f"{self._config.config_mount}/{key}"
