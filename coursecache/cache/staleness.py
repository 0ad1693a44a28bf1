# coursecache/cache/staleness.py
"""
Staleness Evaluation Module.

An entry past 80% of its TTL is still served, but the query layer starts a
background refresh for it (stale-while-revalidate).
"""

from __future__ import annotations
from typing import Any

from .cache_entry import CacheEntry

STALE_THRESHOLD = 0.8


def is_stale(entry: CacheEntry[Any], now: int) -> bool:
    """
    Decide whether a present entry is due for a background refresh.

    Args:
        entry: The cache entry to evaluate.
        now: Current time in milliseconds.

    Returns:
        True once the entry's age exceeds STALE_THRESHOLD of its TTL.
    """
    return entry.age(now) > entry.ttl * STALE_THRESHOLD
