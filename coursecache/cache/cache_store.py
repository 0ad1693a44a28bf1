# coursecache/cache/cache_store.py
"""
Two-Tier Cache Store Module.

Implements the read cache used in front of the document database:
1. Volatile tier (in-process LRU map, fastest, lost on restart)
2. Durable tier (pluggable IDurableStore, survives restarts, opt-in per write)

Expiry is evaluated lazily on read. Failures of the durable tier are logged
and absorbed; the volatile tier keeps working on its own.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Callable, MutableMapping, Optional, TypeVar
from cachetools import LRUCache

from .cache_entry import CacheEntry, now_ms
from .cache_exceptions import CacheSerializationError
from .interface import IDurableStore
from .staleness import is_stale as entry_is_stale

logger = logging.getLogger(__name__)

T = TypeVar("T")

# --- Configuration Defaults ---
DEFAULT_KEY_PREFIX = "artvince_cache_"
DEFAULT_MEMORY_MAXSIZE = 1024


class CacheStore:
    """
    Owns both cache tiers and is the only component that mutates them.

    Construct one per application (or per test) and pass it to the query
    and invalidation layers.
    """

    def __init__(
        self,
        durable_store: Optional[IDurableStore] = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        memory_maxsize: Optional[int] = DEFAULT_MEMORY_MAXSIZE,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialise the CacheStore.

        Args:
            durable_store: Provider for the durable tier. If None, only the
                           volatile tier is used and persist requests are ignored.
            key_prefix: Prefix applied to every durable tier key.
            memory_maxsize: Maximum number of volatile entries (least recently
                            used are dropped first). None or 0 means unbounded.
            clock: Returns the current time in milliseconds.
        """
        logger.info("Initialising CacheStore...")
        self._clock = clock
        self.key_prefix = key_prefix

        # --- Volatile tier ---
        self._memory: MutableMapping[str, CacheEntry[Any]]
        if memory_maxsize:
            self._memory = LRUCache(maxsize=memory_maxsize)
            logger.info(f"Volatile tier enabled (LRU, maxsize={memory_maxsize}).")
        else:
            self._memory = {}
            logger.info("Volatile tier enabled (unbounded).")

        # --- Durable tier ---
        self._durable = durable_store
        if durable_store is not None:
            logger.info(
                f"Durable tier enabled ({durable_store.__class__.__name__}, prefix='{key_prefix}')."
            )
        else:
            logger.info("Durable tier disabled.")

    @property
    def durable_enabled(self) -> bool:
        return self._durable is not None

    def now(self) -> int:
        return self._clock()

    def _durable_key(self, key: str) -> str:
        return self.key_prefix + key

    # --- Serialization ---

    @staticmethod
    def _serialize(entry: CacheEntry[Any]) -> str:
        try:
            return json.dumps(entry.to_dict(), separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError, RecursionError) as e:
            raise CacheSerializationError(f"Cache entry payload is not JSON serializable: {e}") from e

    @staticmethod
    def _deserialize(raw: str) -> CacheEntry[Any]:
        try:
            decoded = json.loads(raw)
            if not isinstance(decoded, dict):
                raise ValueError(f"expected an object, got {type(decoded).__name__}")
            return CacheEntry.from_dict(decoded)
        except (TypeError, ValueError, KeyError, RecursionError) as e:
            raise CacheSerializationError(f"Corrupt cache record: {e}") from e

    # --- Durable tier helpers (never raise; any provider failure degrades to volatile-only) ---

    def _read_durable(self, key: str) -> Optional[CacheEntry[Any]]:
        if self._durable is None:
            return None
        durable_key = self._durable_key(key)
        try:
            raw = self._durable.read_raw(durable_key)
        except Exception as e:
            logger.warning(f"Durable tier read failed for key {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return self._deserialize(raw)
        except CacheSerializationError as e:
            logger.warning(f"Removing unreadable durable record for key {key}: {e}")
            self._remove_durable(durable_key)
            return None

    def _write_durable(self, key: str, entry: CacheEntry[Any]) -> bool:
        if self._durable is None:
            return False
        try:
            self._durable.write_raw(self._durable_key(key), self._serialize(entry))
            return True
        except Exception as e:
            logger.warning(f"Skipping durable write for key {key}: {e}")
            return False

    def _remove_durable(self, durable_key: str) -> None:
        if self._durable is None:
            return
        try:
            self._durable.remove_raw(durable_key)
        except Exception as e:
            logger.warning(f"Durable tier delete failed for key {durable_key}: {e}")

    def _durable_keys_with_prefix(self, prefix: str) -> list[str]:
        if self._durable is None:
            return []
        try:
            return [k for k in self._durable.keys() if k.startswith(prefix)]
        except Exception as e:
            logger.warning(f"Durable tier key scan failed for prefix '{prefix}': {e}")
            return []

    # --- Public operations ---

    def get_entry(self, key: str) -> Optional[CacheEntry[Any]]:
        """
        Retrieve the full entry for a key (volatile tier, then durable tier).

        A valid durable hit is promoted into the volatile tier. Expired
        entries are deleted from the tier they were found in.

        Args:
            key: The cache key.

        Returns:
            The entry, or None if absent or expired.
        """
        now = self._clock()

        # 1. Volatile tier
        entry = self._memory.get(key)
        if entry is not None:
            if entry.is_valid(now):
                logger.debug(f"Volatile tier hit for key: {key}")
                return entry
            logger.debug(f"Volatile tier entry expired for key: {key}")
            del self._memory[key]

        # 2. Durable tier
        entry = self._read_durable(key)
        if entry is not None:
            if entry.is_valid(now):
                logger.debug(f"Durable tier hit for key: {key}; promoting to volatile tier.")
                self._memory[key] = entry
                return entry
            logger.debug(f"Durable tier entry expired for key: {key}")
            self._remove_durable(self._durable_key(key))

        # 3. Miss
        logger.debug(f"Cache miss for key: {key}")
        return None

    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a cached value.

        Returns:
            The cached data, or None if absent or expired.
        """
        entry = self.get_entry(key)
        return entry.data if entry is not None else None

    def set(self, key: str, data: T, ttl: int, persist: bool = False) -> CacheEntry[T]:
        """
        Store a value in the volatile tier, and in the durable tier if requested.

        Args:
            key: The cache key.
            data: The payload to cache.
            ttl: Time-to-live in milliseconds.
            persist: Also write the entry to the durable tier.

        Returns:
            The entry that was written.
        """
        entry = CacheEntry(data=data, timestamp=self._clock(), ttl=ttl)
        self._memory[key] = entry
        if persist:
            self._write_durable(key, entry)
        logger.debug(f"Stored key {key} (TTL: {ttl}ms, persist: {persist}).")
        return entry

    def is_stale(self, key: str) -> bool:
        """
        True if the volatile entry for a key is due for refresh, or missing.
        """
        entry = self._memory.get(key)
        if entry is None:
            return True
        return entry_is_stale(entry, self._clock())

    def clear(self, key: str) -> None:
        """Remove a key from both tiers."""
        self._memory.pop(key, None)
        self._remove_durable(self._durable_key(key))
        logger.debug(f"Cleared key: {key}")

    def clear_by_prefix(self, prefix: str) -> int:
        """
        Remove every key starting with a prefix from both tiers.

        Returns:
            Number of records removed across both tiers.
        """
        removed = 0
        for key in [k for k in self._memory.keys() if k.startswith(prefix)]:
            self._memory.pop(key, None)
            removed += 1
        for durable_key in self._durable_keys_with_prefix(self._durable_key(prefix)):
            self._remove_durable(durable_key)
            removed += 1
        logger.info(f"Cleared {removed} cache records with prefix '{prefix}'.")
        return removed

    def clear_all(self) -> None:
        """Purge both tiers. Only durable keys carrying this store's prefix are touched."""
        logger.warning("Clearing ALL cache tiers...")
        self._memory.clear()
        for durable_key in self._durable_keys_with_prefix(self.key_prefix):
            self._remove_durable(durable_key)
        logger.warning("Cache clearing process finished.")

    def close(self) -> None:
        """Close the durable provider if it holds resources."""
        close = getattr(self._durable, "close", None)
        if callable(close):
            close()
        logger.info("CacheStore closed.")

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get_entry(key) is not None

    def __len__(self) -> int:
        """Number of entries currently held in the volatile tier."""
        return len(self._memory)
