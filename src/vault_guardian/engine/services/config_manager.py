"""Config service — the persisted guardian Config record.

The record holds the three long-lived secrets every other service needs:
the Vault service credential, the Okta organization URL and the Okta API
token. It is stored as a single record named ``config`` and loaded fresh for
every request; nothing here is cached on the process.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from vault_guardian.errors.definitions import (
    ConfigIncompleteError,
    ErrMissingOktaToken,
    ErrMissingOktaURL,
    ErrMissingSecretID,
)

if TYPE_CHECKING:
    from vault_guardian.storage.client import ConfigStorage

logger = logging.getLogger(__name__)

CONFIG_KEY = "config"


class GuardianConfig(BaseModel):
    """Required constants for running the guardian.

    The service credential must hold the guardian policy. JSON field names
    match the ``config`` record layout existing deployments already store.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    service_credential: str = Field(default="", alias="guardian_token")
    identity_provider_url: str = Field(default="", alias="okta_url")
    identity_provider_token: str = Field(default="", alias="okta_token")

    def require_complete(self) -> None:
        """Raise unless all three fields are set.

        Raises:
            ConfigIncompleteError: Naming the first missing field.
        """
        if not self.service_credential:
            raise ConfigIncompleteError(
                "Guardian is not authorized: missing guardian_token, call authorize first"
            )
        if not self.identity_provider_url:
            raise ConfigIncompleteError("Guardian is not configured: missing okta_url")
        if not self.identity_provider_token:
            raise ConfigIncompleteError("Guardian is not configured: missing okta_token")


class ConfigManager:
    """Loads, merges and persists the guardian Config record."""

    def __init__(self, storage: ConfigStorage) -> None:
        self._storage = storage

    async def load(self) -> GuardianConfig:
        """Load the Config record; an absent record yields an empty Config."""
        record = await self._storage.get(CONFIG_KEY)
        if record is None:
            return GuardianConfig()
        return GuardianConfig.model_validate(record)

    async def save(self, config: GuardianConfig) -> None:
        """Persist *config* as the Config record (last writer wins)."""
        await self._storage.put(CONFIG_KEY, config.model_dump(by_alias=True))
        logger.info("Guardian config updated")

    @staticmethod
    def merge(
        current: GuardianConfig,
        *,
        service_credential: str | None = None,
        identity_provider_url: str | None = None,
        identity_provider_token: str | None = None,
    ) -> GuardianConfig:
        """Overlay the supplied fields onto *current*.

        Fields left as None keep their current value. The merged Config must
        be complete.

        Raises:
            ConfigIncompleteError: If any field is still empty after the merge.
        """
        merged = current.model_copy(
            update={
                k: v
                for k, v in (
                    ("service_credential", service_credential),
                    ("identity_provider_url", identity_provider_url),
                    ("identity_provider_token", identity_provider_token),
                )
                if v is not None
            }
        )
        if not merged.service_credential:
            raise ErrMissingSecretID
        if not merged.identity_provider_url:
            raise ErrMissingOktaURL
        if not merged.identity_provider_token:
            raise ErrMissingOktaToken
        return merged
