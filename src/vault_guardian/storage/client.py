"""Config storage abstraction with Vault KV and in-memory backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import httpx

    from vault_guardian.config.settings import StorageConfig, VaultConfig


class ConfigStorage:
    """Keyed JSON record storage that delegates to Vault KV or memory."""

    def __init__(
        self,
        config: StorageConfig,
        vault_config: VaultConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize storage with configuration.

        Args:
            config: Storage configuration selecting the backend.
            vault_config: Vault settings used by the Vault backend.
            transport: Optional httpx transport for the Vault backend.
        """
        self._config = config
        self._vault_config = vault_config
        self._transport = transport
        self._backend: StorageBackend | None = None

    async def connect(self) -> None:
        """Connect to the storage backend.

        Raises:
            ValueError: If the storage engine is unsupported.
        """
        from vault_guardian.storage.memory import MemoryStorage
        from vault_guardian.storage.vault import VaultStorage

        engine = self._config.engine.lower()

        if engine == "vault":
            self._backend = VaultStorage(self._vault_config, transport=self._transport)
        elif engine == "memory":
            self._backend = MemoryStorage()
        else:
            msg = f"Unsupported storage engine: {engine}"
            raise ValueError(msg)

        await self._backend.connect()

    async def close(self) -> None:
        """Close the storage backend (idempotent)."""
        if self._backend is not None:
            await self._backend.close()
            self._backend = None

    @property
    def is_connected(self) -> bool:
        """Check if the storage is connected."""
        return self._backend is not None

    async def get(self, key: str) -> dict[str, Any] | None:
        """Get a record, or None if absent."""
        return await self._ensure_connected().get(key)

    async def put(self, key: str, value: dict[str, Any]) -> None:
        """Store a record, replacing any previous value."""
        await self._ensure_connected().put(key, value)

    def _ensure_connected(self) -> StorageBackend:
        if self._backend is None:
            msg = "Storage not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._backend


class StorageBackend(Protocol):
    """Protocol for storage backend implementations."""

    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def get(self, key: str) -> dict[str, Any] | None: ...
    async def put(self, key: str, value: dict[str, Any]) -> None: ...
