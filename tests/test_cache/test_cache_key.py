# tests/test_cache/test_cache_key.py
# -*- coding: utf-8 -*-
"""
Tests for cache key generation.
"""
import itertools
from datetime import date

import numpy as np
import pandas as pd
import pytest

from coursecache.cache.cache_exceptions import CacheKeyError
from coursecache.cache.cache_key import generate_cache_key, generate_doc_key

# --- Test Cases ---

def test_namespace_without_params_is_unchanged():
    assert generate_cache_key("courses") == "courses"
    assert generate_cache_key("courses", None) == "courses"
    assert generate_cache_key("courses", {}) == "courses"

def test_params_are_rendered_as_sorted_json_pairs():
    key = generate_cache_key("courses", {"status": "published", "limit": 6})
    assert key == 'courses_limit=6&status="published"'

def test_key_is_invariant_under_param_order():
    params = {"category": "design", "limit": 12, "featured": True, "tags": ["ui", "ux"]}
    keys = {
        generate_cache_key("courses", dict(permutation))
        for permutation in itertools.permutations(params.items())
    }
    assert len(keys) == 1

def test_nested_dicts_are_canonical():
    a = generate_cache_key("enrollments", {"filter": {"user": "u1", "state": "pending"}})
    b = generate_cache_key("enrollments", {"filter": {"state": "pending", "user": "u1"}})
    assert a == b
    assert a == 'enrollments_filter={"state":"pending","user":"u1"}'

def test_different_values_give_different_keys():
    assert generate_cache_key("courses", {"limit": 6}) != generate_cache_key("courses", {"limit": "6"})
    assert generate_cache_key("courses", {"limit": 6}) != generate_cache_key("mentors", {"limit": 6})

def test_sets_are_order_independent():
    assert generate_cache_key("courses", {"ids": {"b", "a", "c"}}) == 'courses_ids=["a","b","c"]'

def test_numpy_and_pandas_values():
    assert generate_cache_key("stats", {"n": np.int64(3)}) == "stats_n=3"
    assert generate_cache_key("stats", {"ids": np.array([1, 2])}) == "stats_ids=[1,2]"
    key = generate_cache_key("stats", {"since": pd.Timestamp("2024-01-01")})
    assert key == 'stats_since="2024-01-01T00:00:00"'

def test_dates_use_iso_format():
    assert generate_cache_key("announcements", {"day": date(2024, 5, 1)}) == 'announcements_day="2024-05-01"'

def test_objects_can_define_their_own_key():
    class Constraint:
        def __cache_key__(self):
            return ["where", "status", "==", "open"]

    key = generate_cache_key("courses", {"constraint": Constraint()})
    assert key == 'courses_constraint=["where","status","==","open"]'

def test_unserializable_value_raises_cache_key_error():
    with pytest.raises(CacheKeyError, match="parameter 'obj'"):
        generate_cache_key("courses", {"obj": object()})

def test_cache_key_error_is_a_type_error():
    with pytest.raises(TypeError):
        generate_cache_key("courses", {"obj": object()})

@pytest.mark.parametrize("name", ["a=1&b", "a&b", "x=y"])
def test_param_names_with_delimiters_are_rejected(name):
    with pytest.raises(CacheKeyError, match="invalid parameter name"):
        generate_cache_key("courses", {name: 2})

def test_delimiter_names_cannot_collide_with_other_params():
    assert generate_cache_key("courses", {"a": 1, "b": 2}) == "courses_a=1&b=2"
    with pytest.raises(CacheKeyError):
        generate_cache_key("courses", {"a=1&b": 2})

def test_non_string_param_names_are_rejected():
    with pytest.raises(CacheKeyError):
        generate_cache_key("courses", {1: "one", "limit": 6})

def test_doc_key_shares_collection_prefix():
    key = generate_doc_key("courses", "abc123")
    assert key == "courses_doc_abc123"
    assert key.startswith("courses")
