"""Key-value persistence backends for client-side state (favourites).

Every backend implements the two-call contract ``get_item(key)`` /
``set_item(key, value)`` with string values, the same shape as a browser's
local storage.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, TextIO

from pymongo.collection import Collection

from ..clients.mongodb_client import get_storage_collection
from ..config import FAVORITES_BACKEND, FAVORITES_DIR

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage; nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class LocalFileStorage:
    """One UTF-8 file per key inside *directory*.

    Writes go to a temporary file in the same directory which atomically
    replaces the target on success, so readers never see a partial value.
    """

    def __init__(self, directory: Path | str = FAVORITES_DIR) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    @contextmanager
    def _atomic_writer(self, key: str) -> Iterator[TextIO]:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yield handle
            os.replace(tmp_name, self._path(key))
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def set_item(self, key: str, value: str) -> None:
        with self._atomic_writer(key) as handle:
            handle.write(value)
        logger.debug("Wrote %d bytes to %s", len(value), self._path(key))


class MongoStorage:
    """Key-value documents ``{_id: key, value: str}`` in a MongoDB collection."""

    def __init__(self, collection: Optional[Collection] = None) -> None:
        self._collection = collection

    @property
    def collection(self) -> Collection:
        if self._collection is None:
            self._collection = get_storage_collection()
        return self._collection

    def get_item(self, key: str) -> Optional[str]:
        document = self.collection.find_one({"_id": key})
        if document is None:
            return None
        return document.get("value")

    def set_item(self, key: str, value: str) -> None:
        result = self.collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)
        logger.debug("Stored key %s to MongoDB (matched=%s)", key, result.matched_count)


def get_storage(backend: Optional[str] = None) -> KeyValueStorage:
    """Return the storage selected by *backend* (defaults to ``FAVORITES_BACKEND``)."""
    backend = (backend or FAVORITES_BACKEND).lower()
    if backend == "file":
        return LocalFileStorage()
    if backend == "mongodb":
        return MongoStorage()
    if backend == "memory":
        return MemoryStorage()
    raise ValueError(f"Unknown favourites backend '{backend}'")


__all__ = [
    "KeyValueStorage",
    "LocalFileStorage",
    "MemoryStorage",
    "MongoStorage",
    "get_storage",
]
