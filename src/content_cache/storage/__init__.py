"""Storage adapters for the cached content snapshot.

Modules:

- ``base``            -- ``CachedCollections`` and the ``StorageAdapter`` protocol.
- ``json_adapter``    -- ``JsonFileAdapter``: one JSON document, full replace.
- ``sqlite_adapter``  -- ``SqliteAdapter``: table per collection, upsert.
- ``memory_adapter``  -- ``MemoryAdapter``: no persistence.
- ``selector``        -- ``normalize_adapter_name`` and ``create_adapter``.
"""

from .base import COLLECTION_NAMES, CachedCollections, StorageAdapter
from .json_adapter import JsonFileAdapter
from .memory_adapter import MemoryAdapter
from .selector import AdapterName, create_adapter, normalize_adapter_name
from .sqlite_adapter import SqliteAdapter

__all__ = [
    "COLLECTION_NAMES",
    "AdapterName",
    "CachedCollections",
    "JsonFileAdapter",
    "MemoryAdapter",
    "SqliteAdapter",
    "StorageAdapter",
    "create_adapter",
    "normalize_adapter_name",
]
