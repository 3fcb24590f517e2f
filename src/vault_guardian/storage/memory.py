"""In-memory storage backend for development and tests."""

from __future__ import annotations

import copy
from typing import Any


class MemoryStorage:
    """Dict-backed record storage. Contents are lost on close."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    async def connect(self) -> None:  # noqa: ASYNC910
        """Connect (no-op for in-memory)."""

    async def close(self) -> None:  # noqa: ASYNC910
        """Close and clear all records."""
        self._records.clear()

    async def get(self, key: str) -> dict[str, Any] | None:  # noqa: ASYNC910
        record = self._records.get(key)
        return copy.deepcopy(record) if record is not None else None

    async def put(self, key: str, value: dict[str, Any]) -> None:  # noqa: ASYNC910
        self._records[key] = copy.deepcopy(value)
