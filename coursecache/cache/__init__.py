"""
Cache Subpackage for coursecache.

This subpackage contains the two-tier cache store, key generation,
staleness evaluation, invalidation and the query binding layer.
"""

from .cache_entry import CACHE_TTL, CacheEntry
from .cache_invalidation import CacheInvalidator
from .cache_key import generate_cache_key, generate_doc_key
from .cache_manager import CachedQuery, CacheManager, QueryOptions, QueryState, QueryStatus
from .cache_store import CacheStore
from .durable_store import DiskDurableStore, MemoryDurableStore
from .staleness import is_stale

__all__ = [
    "CACHE_TTL",
    "CacheEntry",
    "CacheInvalidator",
    "CacheManager",
    "CacheStore",
    "CachedQuery",
    "DiskDurableStore",
    "MemoryDurableStore",
    "QueryOptions",
    "QueryState",
    "QueryStatus",
    "generate_cache_key",
    "generate_doc_key",
    "is_stale",
]
