"""In-memory artifact storage."""

from __future__ import annotations

import logging
import threading

from contextingest.core.config import StorageConfig
from contextingest.core.exceptions import StorageError, StorageErrorKind
from contextingest.core.interfaces import BaseStorage
from contextingest.core.registry import register_storage

logger = logging.getLogger(__name__)


@register_storage("memory")
class InMemoryStorage(BaseStorage):
    """Process-lifetime key/value store.

    Values are immutable `bytes` swapped in under a lock, so a reader sees
    either the old or the new value, never a partial write. There is no
    eviction and no size limit.
    """

    name = "memory"

    def __init__(self, config: StorageConfig | None = None) -> None:
        super().__init__()
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def store(self, key: str, data: bytes) -> None:
        if not key:
            raise ValueError("storage key must be non-empty")
        value = bytes(data)
        with self._lock:
            self._data[key] = value
        logger.debug("memory: stored %s (%d bytes)", key, len(value))

    def retrieve(self, key: str) -> bytes:
        with self._lock:
            value = self._data.get(key)
        if value is None:
            raise StorageError(StorageErrorKind.NOT_FOUND, f"key not found: {key}")
        return value

    def delete(self, key: str) -> None:
        with self._lock:
            if key not in self._data:
                raise StorageError(StorageErrorKind.NOT_FOUND, f"key not found: {key}")
            del self._data[key]

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


__all__ = ["InMemoryStorage"]
