"""Resolve a configured backend identifier to a concrete storage adapter."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from .base import StorageAdapter
from .json_adapter import DEFAULT_JSON_PATH, JsonFileAdapter
from .memory_adapter import MemoryAdapter
from .sqlite_adapter import DEFAULT_SQLITE_PATH, SqliteAdapter

logger = logging.getLogger(__name__)


class AdapterName(str, Enum):
    """Closed set of storage backends."""

    JSON = "JsonDB"
    SQLITE = "SQLiteDB"
    MEMORY = "MemoryDB"
    DISABLED = "FALSE"


_ALIASES: dict[str, AdapterName] = {
    "JSONDB": AdapterName.JSON,
    "JSON": AdapterName.JSON,
    "SQLITEDB": AdapterName.SQLITE,
    "SQLITE": AdapterName.SQLITE,
    "MEMORYDB": AdapterName.MEMORY,
    "MEMORY": AdapterName.MEMORY,
}


def normalize_adapter_name(value: str | None) -> AdapterName:
    """Map *value* to an ``AdapterName``, case-insensitively.

    Total: anything unrecognised, including ``None`` and ``""``, maps to
    ``AdapterName.DISABLED``.
    """
    return _ALIASES.get(str(value or "").strip().upper(), AdapterName.DISABLED)


def create_adapter(
    name: AdapterName,
    *,
    json_path: str | Path = DEFAULT_JSON_PATH,
    sqlite_path: str | Path = DEFAULT_SQLITE_PATH,
) -> StorageAdapter | None:
    """Build the adapter for *name*, or ``None`` when storage is disabled."""
    match name:
        case AdapterName.JSON:
            adapter: StorageAdapter = JsonFileAdapter(json_path)
        case AdapterName.SQLITE:
            adapter = SqliteAdapter(sqlite_path)
        case AdapterName.MEMORY:
            adapter = MemoryAdapter()
        case _:
            logger.info("Local storage disabled")
            return None
    logger.info("Storage adapter: %s", adapter.name)
    return adapter
