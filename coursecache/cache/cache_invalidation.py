# coursecache/cache/cache_invalidation.py
"""
Cache Invalidation Module.

Write paths (course edits, enrollment approvals, trainer updates, ...) call
the named invalidation methods here after a successful write so the next read
of the affected resource family is a forced miss. The cache never learns
about writes on its own; a missing call leaves stale data bounded only by TTL.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .cache_store import CacheStore

logger = logging.getLogger(__name__)


class BaseInvalidationStrategy(ABC):
    """
    Abstract Base Class for cache invalidation strategies.

    A strategy removes one group of keys from a CacheStore. Strategies must
    be idempotent: running one against already-absent keys is a no-op.
    """

    @abstractmethod
    def invalidate(self, store: "CacheStore") -> None:
        """
        Remove the keys this strategy targets.

        Args:
            store: The cache store to clear keys from.
        """
        pass


class PrefixInvalidation(BaseInvalidationStrategy):
    """Clears every key starting with one of the given prefixes."""

    def __init__(self, *prefixes: str):
        self.prefixes = prefixes

    def invalidate(self, store: "CacheStore") -> None:
        for prefix in self.prefixes:
            store.clear_by_prefix(prefix)

    def __repr__(self) -> str:
        return f"PrefixInvalidation{self.prefixes!r}"


class KeyInvalidation(BaseInvalidationStrategy):
    """Clears exact keys."""

    def __init__(self, *keys: str):
        self.keys = keys

    def invalidate(self, store: "CacheStore") -> None:
        for key in self.keys:
            store.clear(key)

    def __repr__(self) -> str:
        return f"KeyInvalidation{self.keys!r}"


# Keys the marketplace screens read, grouped by the write that makes them stale
DEFAULT_FAMILIES: dict[str, list[BaseInvalidationStrategy]] = {
    "courses": [PrefixInvalidation("courses"), KeyInvalidation("courses_grid_home")],
    "trainers": [PrefixInvalidation("mentors"), KeyInvalidation("mentors_showcase")],
    "enrollments": [PrefixInvalidation("enrollment"), KeyInvalidation("enrollment_counts")],
    "stats": [KeyInvalidation("about_section_stats")],
    "showcase": [PrefixInvalidation("showcase")],
}


class CacheInvalidator:
    """
    Runs the invalidation strategies registered for each resource family.

    Every call is synchronous and idempotent.
    """

    def __init__(
        self,
        store: "CacheStore",
        families: Optional[Mapping[str, Sequence[BaseInvalidationStrategy]]] = None,
    ):
        """
        Initialise the CacheInvalidator.

        Args:
            store: The CacheStore to invalidate.
            families: Mapping of family name to strategies. Defaults to the
                      marketplace families (courses, trainers, enrollments,
                      stats, showcase).
        """
        self._store = store
        source = DEFAULT_FAMILIES if families is None else families
        self._families: dict[str, list[BaseInvalidationStrategy]] = {
            name: list(strategies) for name, strategies in source.items()
        }
        logger.info(f"Initialising CacheInvalidator with families: {sorted(self._families)}")

    @property
    def families(self) -> list[str]:
        return sorted(self._families)

    def register(self, family: str, strategies: Iterable[BaseInvalidationStrategy]) -> None:
        """Add strategies to a family, creating it if needed."""
        self._families.setdefault(family, []).extend(strategies)
        logger.debug(f"Registered invalidation strategies for family '{family}'.")

    def trigger_invalidation(self, family: str) -> None:
        """
        Run every strategy registered for a family.

        Args:
            family: Name of the resource family that was written to.

        Raises:
            KeyError: If no such family is registered.
        """
        try:
            strategies = self._families[family]
        except KeyError:
            raise KeyError(f"Unknown invalidation family: {family!r}") from None

        logger.info(f"Invalidation triggered for family: {family}")
        for strategy in strategies:
            strategy.invalidate(self._store)
            logger.debug(f"Applied {strategy!r} for family '{family}'.")

    # --- Named invalidations used by write paths ---

    def invalidate_course_cache(self) -> None:
        """After creating, editing or deleting a course."""
        self.trigger_invalidation("courses")

    def invalidate_trainer_cache(self) -> None:
        """After changing the trainer/mentor roster."""
        self.trigger_invalidation("trainers")

    def invalidate_enrollment_cache(self) -> None:
        """After an enrollment is created, approved or rejected."""
        self.trigger_invalidation("enrollments")

    def invalidate_stats_cache(self) -> None:
        """After anything that moves the aggregate statistics."""
        self.trigger_invalidation("stats")

    def invalidate_showcase_cache(self) -> None:
        """After editing the showcase gallery."""
        self.trigger_invalidation("showcase")

    def clear_all_cache(self) -> None:
        """Administrative escape hatch: purge everything."""
        logger.warning("Invalidating the entire cache.")
        self._store.clear_all()
