# coursecache/cache/cache_entry.py
"""
Cache Entry Module.

Defines the record stored in both cache tiers, together with the default
time-to-live values used by the marketplace screens.
"""

from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

T = TypeVar("T")

# Default TTLs per resource family, in milliseconds
CACHE_TTL: dict[str, int] = {
    "courses": 5 * 60 * 1000,
    "trainers": 10 * 60 * 1000,
    "showcase": 10 * 60 * 1000,
    "announcements": 5 * 60 * 1000,
    "modules": 5 * 60 * 1000,
    "enrollments": 2 * 60 * 1000,
    "stats": 5 * 60 * 1000,
}


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """
    A cached payload with the time it was written and its validity window.

    Attributes:
        data: The cached payload. Its shape is defined by the caller.
        timestamp: Write time in wall-clock milliseconds.
        ttl: Validity window in milliseconds, fixed at write time.
    """

    data: T
    timestamp: int
    ttl: int

    def age(self, now: int) -> int:
        return now - self.timestamp

    def is_valid(self, now: int) -> bool:
        """True while the entry is younger than its TTL."""
        return self.age(now) < self.ttl

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "timestamp": self.timestamp, "ttl": self.ttl}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CacheEntry[Any]":
        """
        Rebuild an entry from its stored mapping form.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If timestamp or ttl is not an integer.
        """
        timestamp = raw["timestamp"]
        ttl = raw["ttl"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValueError(f"timestamp must be an integer, got {timestamp!r}")
        if isinstance(ttl, bool) or not isinstance(ttl, int):
            raise ValueError(f"ttl must be an integer, got {ttl!r}")
        return cls(data=raw["data"], timestamp=timestamp, ttl=ttl)
