import logging
import pandas as pd
import numpy as np

from coursecache.cache.cache_key import generate_cache_key, generate_doc_key


logging.basicConfig(level=logging.DEBUG)

print("--- Generating Cache Keys ---")

key1 = generate_cache_key("courses", {"category": "painting", "limit": 6, "featured": True})
print(f"Key 1: {key1}")

# Same parameters, different insertion order - should yield same key
key2 = generate_cache_key("courses", {"featured": True, "limit": 6, "category": "painting"})
print(f"Key 2 (same as 1?): {key2} -> {key1 == key2}")

# Different parameter value
key3 = generate_cache_key("courses", {"category": "sculpture", "limit": 6, "featured": True})
print(f"Key 3 (different): {key3}")

# Namespace only
print(f"Key 4 (no params): {generate_cache_key('mentors_showcase')}")

# numpy / pandas parameter values
key5 = generate_cache_key(
    "enrollments",
    {"course_ids": np.array(["c1", "c2"]), "since": pd.Timestamp("2024-09-01"), "page": np.int64(2)},
)
print(f"Key 5 (numpy/pandas): {key5}")

print(f"Key 6 (document): {generate_doc_key('courses', 'c1')}")

try:
    generate_cache_key("courses", {"session": object()})
except TypeError as e:
    print(f"Unserializable parameter rejected: {e}")
