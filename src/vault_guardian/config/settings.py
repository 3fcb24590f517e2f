"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``GUARDIAN_``, nested via ``__``)
2. YAML config file (``GUARDIAN_CONFIG_PATH`` env var)
3. Defaults defined here

These are process settings only. The three long-lived secrets the guardian
runs on (service credential, Okta URL, Okta API token) are not settings: they
live in the persisted :class:`~vault_guardian.engine.services.config_manager.GuardianConfig`
record and are changed through the ``authorize`` operation.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class StorageEngine(enum.StrEnum):
    """Where the persisted guardian Config record lives."""

    MEMORY = "memory"
    VAULT = "vault"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="GUARDIAN_SERVER__",
        case_sensitive=False,
    )

    host: str = "127.0.0.1"
    port: int = 8222


class VaultConfig(BaseSettings):
    """HashiCorp Vault connection and mount layout."""

    model_config = SettingsConfigDict(
        env_prefix="GUARDIAN_VAULT__",
        case_sensitive=False,
    )

    address: str = "http://127.0.0.1:8200"
    token: str = Field(
        default="",
        description="Bootstrap token used only to read/write the guardian Config record",
    )
    okta_mount: str = "okta"
    keys_mount: str = "keys"
    config_mount: str = "guardian"
    approle_role_id: str = "guardian-role-id"
    token_role: str = "guardian-enduser"
    enduser_policy: str = "enduser"
    enduser_group: str = "vault-guardian-endusers"
    timeout: float = 30.0


class StorageConfig(BaseSettings):
    """Config record storage settings."""

    model_config = SettingsConfigDict(
        env_prefix="GUARDIAN_STORAGE__",
        case_sensitive=False,
    )

    engine: StorageEngine = Field(
        default=StorageEngine.VAULT,
        description="Config storage backend: memory or vault",
    )


class SigningConfig(BaseSettings):
    """Transaction signing policy."""

    model_config = SettingsConfigDict(
        env_prefix="GUARDIAN_SIGNING__",
        case_sensitive=False,
    )

    zero_gas_price_chain_ids: list[int] = Field(
        default_factory=list,
        description="Chains on which an absent gas_price is signed as zero",
    )
    default_chain_id: int = 1


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="GUARDIAN_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``GUARDIAN_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="GUARDIAN_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    admin_token: str = Field(
        default="",
        description=(
            "Shared secret required by the authorize route; empty refuses all Config updates"
        ),
    )
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    vault: VaultConfig = Field(default_factory=VaultConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                merged = {**val, **values[key]}
                values[key] = merged
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
