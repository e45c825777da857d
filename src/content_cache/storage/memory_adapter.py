"""In-memory storage adapter with no persistence, for tests and scratch use."""

from __future__ import annotations

import threading

from ..errors import StoreEmptyError
from .base import CachedCollections


class MemoryAdapter:
    """Hold one snapshot in memory, replacing it wholesale on every save."""

    name = "memory"
    full_replace = True

    def __init__(self) -> None:
        self._data: CachedCollections | None = None
        self._lock = threading.RLock()

    def get_all(self) -> CachedCollections:
        with self._lock:
            if self._data is None:
                raise StoreEmptyError("Memory store is empty")
            return self._data.model_copy(deep=True)

    def save_all(self, data: CachedCollections) -> None:
        with self._lock:
            self._data = data.model_copy(deep=True)

    def health(self) -> bool:
        return self._data is not None

    def clear(self) -> None:
        with self._lock:
            self._data = None
