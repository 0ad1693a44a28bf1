# coursecache/cache/durable_store.py
"""
Durable Tier Providers.

Implementations of IDurableStore:
1. DiskDurableStore (diskcache directory on the local device, survives restarts)
2. MemoryDurableStore (dictionary, for tests and ephemeral sessions)
"""

from __future__ import annotations
import logging
import sqlite3
from pathlib import Path
from typing import Iterator, Optional, Union
import diskcache

from .cache_exceptions import DurableStoreError

logger = logging.getLogger(__name__)

DEFAULT_DISK_CACHE_DIR = "./data/cache"

# Errors diskcache surfaces for locked databases, full disks and I/O problems
_DISK_ERRORS = (diskcache.Timeout, sqlite3.Error, OSError)


class DiskDurableStore:
    """
    Durable tier backed by a diskcache directory.

    Values are stored as plain text. Expiry is left to the cache store, so
    entries are written without a diskcache expire time.
    """

    def __init__(self, directory: Union[str, Path] = DEFAULT_DISK_CACHE_DIR):
        cache_path = Path(directory)
        try:
            cache_path.mkdir(parents=True, exist_ok=True)
            self._cache = diskcache.Cache(str(cache_path))
        except _DISK_ERRORS as e:
            raise DurableStoreError(
                f"Failed to open disk cache at {cache_path}: {e}",
                details={"directory": str(cache_path)},
            ) from e
        self.directory = str(cache_path)
        logger.info(f"Disk durable store opened (Directory: {self.directory}).")

    def read_raw(self, key: str) -> Optional[str]:
        try:
            value = self._cache.get(key, default=None, retry=True)
        except _DISK_ERRORS as e:
            raise DurableStoreError(f"Disk read failed for key {key}: {e}", details={"key": key}) from e
        if value is not None and not isinstance(value, str):
            # Written by something other than the cache store
            raise DurableStoreError(
                f"Disk record for key {key} is not text ({type(value).__name__})",
                details={"key": key},
            )
        return value

    def write_raw(self, key: str, value: str) -> None:
        try:
            stored = self._cache.set(key, value, retry=True)
        except _DISK_ERRORS as e:
            raise DurableStoreError(f"Disk write failed for key {key}: {e}", details={"key": key}) from e
        if not stored:
            raise DurableStoreError(f"Disk write was rejected for key {key}", details={"key": key})

    def remove_raw(self, key: str) -> None:
        try:
            self._cache.delete(key, retry=True)
        except _DISK_ERRORS as e:
            raise DurableStoreError(f"Disk delete failed for key {key}: {e}", details={"key": key}) from e

    def keys(self) -> Iterator[str]:
        try:
            # Snapshot first; callers delete while iterating
            snapshot = [key for key in self._cache if isinstance(key, str)]
        except _DISK_ERRORS as e:
            raise DurableStoreError(f"Disk key enumeration failed: {e}") from e
        return iter(snapshot)

    def close(self) -> None:
        """Close the underlying diskcache handle."""
        try:
            self._cache.close()
            logger.info("Disk durable store closed.")
        except _DISK_ERRORS as e:
            logger.error(f"Error closing disk durable store: {e}", exc_info=True)


class MemoryDurableStore:
    """
    Dictionary-backed durable tier.

    Lives only as long as the object does. An optional quota (total UTF-8 bytes of stored keys and values) makes
    writes fail the way a full browser storage area would.
    """

    def __init__(self, quota: Optional[int] = None):
        self._data: dict[str, str] = {}
        self.quota = quota

    @staticmethod
    def _size(key: str, value: str) -> int:
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    def _used(self, excluding: Optional[str] = None) -> int:
        return sum(self._size(k, v) for k, v in self._data.items() if k != excluding)

    def read_raw(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write_raw(self, key: str, value: str) -> None:
        if self.quota is not None and self._used(excluding=key) + self._size(key, value) > self.quota:
            raise DurableStoreError(
                f"Storage quota of {self.quota} exceeded writing key {key}",
                details={"key": key, "quota": self.quota},
            )
        self._data[key] = value

    def remove_raw(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)
