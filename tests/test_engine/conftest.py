"""Fixtures for engine service tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
async def session(engine, guardian_config) -> AsyncIterator:
    """Open a per-request session against the fake Vault and Okta."""
    async with engine.session(guardian_config) as s:
        yield s
