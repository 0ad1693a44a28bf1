# tests/conftest.py
# -*- coding: utf-8 -*-
"""
Shared fixtures: a controllable clock, in-memory tiers and fake fetches.
"""
import asyncio
from typing import Any, Optional

import pytest

from coursecache.cache.cache_manager import CacheManager
from coursecache.cache.cache_store import CacheStore
from coursecache.cache.durable_store import MemoryDurableStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class CountingDurableStore(MemoryDurableStore):
    """MemoryDurableStore that counts raw reads."""

    def __init__(self, quota: Optional[int] = None):
        super().__init__(quota=quota)
        self.reads = 0

    def read_raw(self, key):
        self.reads += 1
        return super().read_raw(key)


class FakeFetch:
    """
    Async fetch operation returning queued results.

    If `gate` is set, each call waits for it before returning, so tests can
    observe the query while the fetch is outstanding.
    """

    def __init__(self, *results: Any, gate: Optional[asyncio.Event] = None):
        self.results = list(results)
        self.calls = 0
        self.gate = gate

    async def __call__(self) -> Any:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def durable():
    return CountingDurableStore()


@pytest.fixture
def store(durable, clock):
    return CacheStore(durable_store=durable, clock=clock)


@pytest.fixture
def manager(store):
    return CacheManager(store)


@pytest.fixture
def make_fetch():
    return FakeFetch
