"""Tests for Config record storage — memory and Vault backends."""

from __future__ import annotations

import pytest

from vault_guardian.config.settings import StorageConfig, StorageEngine
from vault_guardian.storage.client import ConfigStorage


@pytest.fixture
async def memory_storage(app_config):
    storage = ConfigStorage(StorageConfig(engine=StorageEngine.MEMORY), app_config.vault)
    await storage.connect()
    yield storage
    await storage.close()


@pytest.fixture
async def vault_storage(app_config, transport):
    storage = ConfigStorage(
        StorageConfig(engine=StorageEngine.VAULT), app_config.vault, transport=transport
    )
    await storage.connect()
    yield storage
    await storage.close()


class TestConfigStorageLifecycle:
    async def test_not_connected_raises(self, app_config):
        storage = ConfigStorage(StorageConfig(engine=StorageEngine.MEMORY), app_config.vault)
        assert storage.is_connected is False
        with pytest.raises(RuntimeError, match="not connected"):
            await storage.get("config")

    async def test_close_idempotent(self, memory_storage):
        await memory_storage.close()
        await memory_storage.close()
        assert memory_storage.is_connected is False


class TestMemoryStorage:
    async def test_absent(self, memory_storage):
        assert await memory_storage.get("config") is None

    async def test_put_replaces(self, memory_storage):
        await memory_storage.put("config", {"okta_url": "acme"})
        await memory_storage.put("config", {"okta_url": "other"})
        assert await memory_storage.get("config") == {"okta_url": "other"}

    async def test_returns_copies(self, memory_storage):
        record = {"okta_url": "acme"}
        await memory_storage.put("config", record)
        record["okta_url"] = "changed"
        fetched = await memory_storage.get("config")
        fetched["okta_url"] = "changed again"
        assert await memory_storage.get("config") == {"okta_url": "acme"}


class TestVaultStorage:
    async def test_record_lives_under_config_mount(self, vault_storage, fake_vault):
        await vault_storage.put("config", {"okta_url": "acme"})
        assert fake_vault.kv["guardian/config"] == {"okta_url": "acme"}
        assert await vault_storage.get("config") == {"okta_url": "acme"}

    async def test_absent(self, vault_storage):
        assert await vault_storage.get("config") is None
