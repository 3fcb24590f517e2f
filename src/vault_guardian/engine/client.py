"""GuardianEngine — owns config storage and builds per-request sessions."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from vault_guardian.engine.services.config_manager import ConfigManager
from vault_guardian.engine.services.identity_bridge import IdentityBridge
from vault_guardian.engine.services.key_custodian import KeyCustodian
from vault_guardian.engine.services.token_issuer import TokenIssuer
from vault_guardian.metrics.collector import GuardianMetrics
from vault_guardian.okta.client import OktaClient
from vault_guardian.storage.client import ConfigStorage
from vault_guardian.vault.client import VaultClient

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

    from vault_guardian.config.settings import AppConfig
    from vault_guardian.engine.services.config_manager import GuardianConfig

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class GuardianSession:
    """Per-request bundle of clients and services.

    Built from the Config loaded for one request and discarded afterwards,
    so requests share no mutable state.
    """

    def __init__(self, vault: VaultClient, okta: OktaClient) -> None:
        self.vault = vault
        self.okta = okta
        self.custodian = KeyCustodian(vault)
        self.identity = IdentityBridge(vault, okta, self.custodian)
        self.tokens = TokenIssuer(vault, self.custodian)


class GuardianEngine:
    """Central engine owning the config storage and metrics.

    Provides lifecycle management and hands out :class:`GuardianSession`
    objects built from the current persisted Config.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        metrics: GuardianMetrics | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application settings.
            transport: Optional httpx transport shared by every Vault and Okta
                client the engine builds (tests use ``MockTransport``).
            metrics: Optional metrics sink; a private one is created if omitted.
        """
        self._config = config
        self._transport = transport
        self._metrics = metrics or GuardianMetrics()
        self._initialized = False
        self._storage: ConfigStorage | None = None
        self._config_manager: ConfigManager | None = None

    async def initialize(self) -> None:
        """Connect the config storage.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        self._storage = ConfigStorage(
            self._config.storage, self._config.vault, transport=self._transport
        )
        await self._storage.connect()
        self._config_manager = ConfigManager(self._storage)
        self._initialized = True

    async def close(self) -> None:
        """Shut down storage. Can be called multiple times (idempotent)."""
        if not self._initialized:
            return
        self._config_manager = None
        if self._storage is not None:
            await self._storage.close()
            self._storage = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        """Check if the engine is initialized."""
        return self._initialized

    @property
    def config(self) -> AppConfig:
        """Get the application configuration."""
        return self._config

    @property
    def metrics(self) -> GuardianMetrics:
        """Get the guardian metrics."""
        return self._metrics

    @property
    def config_manager(self) -> ConfigManager:
        """Get the Config record manager."""
        if self._config_manager is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._config_manager

    @asynccontextmanager
    async def vault_session(self, token: str = "") -> AsyncIterator[VaultClient]:
        """Open a Vault-only client, for operations that run before Okta is configured."""
        vault = VaultClient(self._config.vault, token=token, transport=self._transport)
        await vault.connect()
        try:
            yield vault
        finally:
            await vault.close()

    @asynccontextmanager
    async def session(self, cfg: GuardianConfig) -> AsyncIterator[GuardianSession]:
        """Open a per-request session using the credentials in *cfg*.

        Clients are created on entry and closed on exit.
        """
        vault = VaultClient(
            self._config.vault, token=cfg.service_credential, transport=self._transport
        )
        okta = OktaClient(
            cfg.identity_provider_url,
            cfg.identity_provider_token,
            timeout=self._config.vault.timeout,
            transport=self._transport,
        )
        await vault.connect()
        await okta.connect()
        try:
            yield GuardianSession(vault, okta)
        finally:
            await okta.close()
            await vault.close()

    async def health_check(self) -> dict[str, str]:
        """Report component status ('ok', 'error', 'not_initialized')."""
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "storage": "unknown",
        }
        if self._initialized:
            status["storage"] = "ok" if self._storage and self._storage.is_connected else "error"
        return status
