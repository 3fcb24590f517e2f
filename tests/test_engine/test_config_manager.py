"""Tests for the guardian Config record and its manager."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from vault_guardian.engine.services.config_manager import CONFIG_KEY, ConfigManager, GuardianConfig
from vault_guardian.errors.definitions import ConfigIncompleteError


class TestGuardianConfig:
    def test_aliases(self):
        cfg = GuardianConfig.model_validate(
            {"guardian_token": "t", "okta_url": "acme", "okta_token": "o"}
        )
        assert cfg.service_credential == "t"
        assert cfg.identity_provider_url == "acme"
        assert cfg.identity_provider_token == "o"
        assert cfg.model_dump(by_alias=True) == {
            "guardian_token": "t",
            "okta_url": "acme",
            "okta_token": "o",
        }

    def test_frozen(self):
        with pytest.raises(ValidationError):
            GuardianConfig().service_credential = "x"

    def test_empty_is_incomplete(self):
        cfg = GuardianConfig()
        with pytest.raises(ConfigIncompleteError, match="guardian_token") as exc_info:
            cfg.require_complete()
        assert exc_info.value.status_code == 412

    @pytest.mark.parametrize(
        ("fields", "missing"),
        [
            ({"service_credential": "t", "identity_provider_token": "o"}, "okta_url"),
            ({"service_credential": "t", "identity_provider_url": "acme"}, "okta_token"),
        ],
    )
    def test_names_missing_field(self, fields, missing):
        with pytest.raises(ConfigIncompleteError, match=missing):
            GuardianConfig(**fields).require_complete()

    def test_complete(self, guardian_config):
        guardian_config.require_complete()  # Should not raise


class TestConfigManager:
    async def test_load_absent(self, app_config):
        from vault_guardian.storage.client import ConfigStorage

        storage = ConfigStorage(app_config.storage, app_config.vault)
        await storage.connect()
        assert await ConfigManager(storage).load() == GuardianConfig()
        await storage.close()

    async def test_save_uses_record_layout(self, engine, guardian_config):
        manager = engine.config_manager
        await manager.save(guardian_config)
        assert await manager.load() == guardian_config
        raw = await manager._storage.get(CONFIG_KEY)
        assert raw["guardian_token"] == "svc-token"

    def test_merge_overlays_given_fields(self, guardian_config):
        merged = ConfigManager.merge(guardian_config, identity_provider_url="other")
        assert merged.identity_provider_url == "other"
        assert merged.service_credential == guardian_config.service_credential

    def test_merge_all_fields(self):
        merged = ConfigManager.merge(
            GuardianConfig(),
            service_credential="t",
            identity_provider_url="acme",
            identity_provider_token="o",
        )
        merged.require_complete()

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"identity_provider_url": "acme", "identity_provider_token": "o"}, "secret_id"),
            ({"service_credential": "t", "identity_provider_token": "o"}, "okta_url"),
            ({"service_credential": "t", "identity_provider_url": "acme"}, "okta_token"),
        ],
    )
    def test_merge_rejects_incomplete(self, kwargs, message):
        with pytest.raises(ConfigIncompleteError, match=message):
            ConfigManager.merge(GuardianConfig(), **kwargs)

    def test_merge_empty_string_clears_field(self, guardian_config):
        with pytest.raises(ConfigIncompleteError, match="okta_token"):
            ConfigManager.merge(guardian_config, identity_provider_token="")
