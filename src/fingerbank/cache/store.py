"""Key/value byte stores backing the response cache.

:class:`CacheStore` is the only contract the cache controller relies on:
``get``/``set``/``delete`` on opaque bytes. Two adapters ship with the
package:

* :class:`MemoryStore` -- a process-local dict guarded by a lock. Useful for
  long-running services and tests.
* :class:`DiskStore` -- a :class:`diskcache.Cache` directory, shared between
  processes and CLI invocations.

Any other backend (Redis, memcached, ...) only has to subclass
:class:`CacheStore`. Locking, durability and eviction are the backend's
business.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import diskcache

from fingerbank.models import CacheConfig


class CacheStore(ABC):
    """Minimal byte store used by :class:`~fingerbank.cache.CacheController`."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under *key*, or ``None`` when absent."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*. Deleting a missing key is not an error."""


class MemoryStore(CacheStore):
    """Thread-safe in-process store."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data


class DiskStore(CacheStore):
    """Persistent store backed by a :class:`diskcache.Cache` directory.

    diskcache is process- and thread-safe, so one directory can be shared by
    concurrent CLI invocations.

    Args:
        directory: Directory holding the cache database. Created on demand.

    Example::

        with DiskStore("~/.cache/fingerbank/responses") as store:
            controller = CacheController(CacheSettings(store=store))
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> Optional[bytes]:
        return self._cache.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._cache.set(key, value)

    def delete(self, key: str) -> None:
        self._cache.delete(key)

    def clear(self) -> int:
        """Remove every entry and return how many were removed."""
        return self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __enter__(self) -> DiskStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def create_store(config: CacheConfig, cache_dir: str | Path) -> Optional[CacheStore]:
    """Build the store selected by *config*, or ``None`` when caching is off.

    Args:
        config: The ``cache`` section of the global configuration.
        cache_dir: Root cache directory; the disk backend lives in its
            ``responses/`` subdirectory.
    """
    if not config.enabled:
        return None
    if config.backend == "memory":
        return MemoryStore()
    return DiskStore(Path(cache_dir) / "responses")
