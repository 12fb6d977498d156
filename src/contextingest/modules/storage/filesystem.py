"""File-backed artifact storage.

One file per key under a root directory. Keys are percent-encoded into file
names, so `doc/a.txt:parsed` is stored as `doc%2Fa.txt%3Aparsed`.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from urllib.parse import quote, unquote

from contextingest.core.config import StorageConfig
from contextingest.core.exceptions import StorageError, StorageErrorKind
from contextingest.core.interfaces import BaseStorage
from contextingest.core.registry import register_storage

logger = logging.getLogger(__name__)

_SUFFIX = ".bin"
_LOCK_STRIPES = 64


@register_storage("filesystem")
class FileStorage(BaseStorage):
    """Durable key/value store on the local filesystem.

    Writes go to a temp file in the same directory and are moved into place
    with `os.replace`, so the last writer wins and readers never see a
    half-written value. Writers of the same key are serialized by lock
    striping; writers of different keys rarely share a stripe.
    """

    name = "filesystem"

    def __init__(
        self, config: StorageConfig | None = None, *, root: str | Path | None = None
    ) -> None:
        super().__init__()
        cfg = config if config is not None else StorageConfig()
        self._root = Path(root if root is not None else cfg.path)
        self._locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                StorageErrorKind.IO, f"cannot create storage root {self._root}: {e}"
            ) from e

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        if not key:
            raise ValueError("storage key must be non-empty")
        return self._root / (quote(key, safe="") + _SUFFIX)

    def _lock(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % _LOCK_STRIPES]

    def store(self, key: str, data: bytes) -> None:
        path = self._path(key)
        with self._lock(key):
            tmp_name = ""
            try:
                fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-")
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except OSError as e:
                if tmp_name:
                    Path(tmp_name).unlink(missing_ok=True)
                raise StorageError(StorageErrorKind.IO, f"cannot write {key}: {e}") from e
        logger.debug("filesystem: stored %s (%d bytes)", key, len(data))

    def retrieve(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(StorageErrorKind.NOT_FOUND, f"key not found: {key}") from e
        except OSError as e:
            raise StorageError(StorageErrorKind.IO, f"cannot read {key}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        with self._lock(key):
            try:
                path.unlink()
            except FileNotFoundError as e:
                raise StorageError(StorageErrorKind.NOT_FOUND, f"key not found: {key}") from e
            except OSError as e:
                raise StorageError(StorageErrorKind.IO, f"cannot delete {key}: {e}") from e

    def keys(self) -> list[str]:
        try:
            names = [p.name for p in self._root.iterdir() if p.is_file()]
        except OSError as e:
            raise StorageError(StorageErrorKind.IO, f"cannot list {self._root}: {e}") from e
        return sorted(
            unquote(n[: -len(_SUFFIX)])
            for n in names
            if n.endswith(_SUFFIX) and not n.startswith(".tmp-")
        )

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()


__all__ = ["FileStorage"]
