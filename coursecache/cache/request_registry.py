# coursecache/cache/request_registry.py
"""
Request Registry Module.

Tracks fetches in flight per cache key so concurrent requests for the same
cold key wait for the first one instead of each hitting the backend.
"""

from __future__ import annotations
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class RequestRegistry:
    """
    Per-key asyncio locks with reference counting.

    The holder of a key's lock performs the fetch; later arrivals block on
    the lock and re-check the cache once it is released. Locks are dropped
    as soon as nobody holds or waits on them.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def get_lock(self, key: str) -> AsyncIterator[bool]:
        """
        Hold the lock for a key for the duration of the block.

        Yields:
            True if another request for the key was already in flight when
            this one arrived (the caller should re-check the cache).
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        # Counts holders and queued waiters; the lock alone reads free between
        # a release and the next waiter waking up.
        contended = self._waiters.get(key, 0) > 0
        self._waiters[key] = self._waiters.get(key, 0) + 1
        if contended:
            logger.debug(f"Request for key {key} is waiting on an in-flight fetch.")
        try:
            async with lock:
                yield contended
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def in_flight(self, key: str) -> bool:
        """True while a request holds the lock for a key."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
