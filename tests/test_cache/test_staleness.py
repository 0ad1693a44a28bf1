# tests/test_cache/test_staleness.py
# -*- coding: utf-8 -*-
"""
Tests for CacheEntry validity and the staleness threshold.
"""
import pytest

from coursecache.cache.cache_entry import CACHE_TTL, CacheEntry
from coursecache.cache.staleness import STALE_THRESHOLD, is_stale

T0 = 1_000_000
TTL = 10_000


@pytest.fixture
def entry():
    return CacheEntry(data={"title": "Figure Drawing"}, timestamp=T0, ttl=TTL)

# --- Test Cases ---

def test_threshold_is_eighty_percent():
    assert STALE_THRESHOLD == 0.8

@pytest.mark.parametrize("elapsed", [0, 1, 4_000, 7_999, 8_000])
def test_not_stale_up_to_threshold(entry, elapsed):
    assert not is_stale(entry, T0 + elapsed)

@pytest.mark.parametrize("elapsed", [8_001, 9_000, 9_999])
def test_stale_but_still_valid_after_threshold(entry, elapsed):
    assert is_stale(entry, T0 + elapsed)
    assert entry.is_valid(T0 + elapsed)

@pytest.mark.parametrize("elapsed,valid", [(0, True), (9_999, True), (10_000, False), (50_000, False)])
def test_validity_window(entry, elapsed, valid):
    assert entry.is_valid(T0 + elapsed) is valid

def test_from_dict_round_trips_fields(entry):
    assert CacheEntry.from_dict(entry.to_dict()) == entry

@pytest.mark.parametrize(
    "raw",
    [
        {"data": 1, "timestamp": T0},
        {"data": 1, "timestamp": "yesterday", "ttl": TTL},
        {"data": 1, "timestamp": T0, "ttl": 1.5},
        {"data": 1, "timestamp": True, "ttl": TTL},
    ],
)
def test_from_dict_rejects_malformed_records(raw):
    with pytest.raises((KeyError, ValueError)):
        CacheEntry.from_dict(raw)

def test_default_ttls_are_milliseconds():
    assert CACHE_TTL["courses"] == 300_000
    assert CACHE_TTL["trainers"] == 600_000
    assert CACHE_TTL["enrollments"] == 120_000
