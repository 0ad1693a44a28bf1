# coursecache/cache/cache_manager.py
"""
Cache Manager Module.

The consumer-facing side of the read cache. A CachedQuery binds an
asynchronous fetch to a cache key and exposes the current value, loading
state and freshness state:

- fresh hit: the cached value is returned and the fetch is not called
- stale hit: the cached value is returned at once and refreshed in the background
- miss: the query is loading until the foreground fetch resolves

The CacheManager creates bound queries, owns the request registry used to
coalesce concurrent fetches and provides a caching decorator for coroutines.
"""

from __future__ import annotations
import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Generic,
    Optional,
    Sequence,
    TypeVar,
    TYPE_CHECKING,
)
from contextlib import asynccontextmanager

from .cache_entry import CACHE_TTL
from .cache_invalidation import CacheInvalidator
from .cache_key import generate_cache_key, generate_doc_key
from .cache_store import CacheStore
from .request_registry import RequestRegistry
from .staleness import is_stale
from ..dataprovider.document_fetch import collection_fetcher, document_fetcher
from ..utils.logger import background_refresh

if TYPE_CHECKING:
    from ..dataprovider.interfaces import IDocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]
Listener = Callable[["QueryState[Any]"], None]


class QueryStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    BACKGROUND_REFRESHING = "background-refreshing"
    SETTLED = "settled"
    ERRORED = "errored"


@dataclass(frozen=True)
class QueryOptions:
    """
    Per-query caching options.

    Attributes:
        ttl: Time-to-live for entries written by the query, in milliseconds.
        persist: Also write entries to the durable tier.
        enabled: A disabled query reports no data and never fetches.
    """

    ttl: int = CACHE_TTL["courses"]
    persist: bool = True
    enabled: bool = True


@dataclass(frozen=True)
class QueryState(Generic[T]):
    """Snapshot of a bound query as seen by its consumer."""

    data: Optional[T] = None
    loading: bool = False
    error: Optional[Exception] = None
    is_from_cache: bool = False
    status: QueryStatus = QueryStatus.IDLE

    @property
    def has_data(self) -> bool:
        return self.data is not None


class CachedQuery(Generic[T]):
    """
    A single fetch operation bound to a cache key.

    Consumers call bind() when they start needing the data, subscribe() to
    follow state changes, refresh() to force a refetch and close() when they
    go away. After close() any outstanding fetch result is discarded.
    """

    def __init__(
        self,
        manager: "CacheManager",
        key: str,
        fetch: Fetcher[T],
        options: QueryOptions,
    ):
        self._manager = manager
        self.key = key
        self._fetch = fetch
        self.options = options
        self._state: QueryState[T] = QueryState()
        self._listeners: list[Listener] = []
        self._refresh_task: Optional[asyncio.Task[None]] = None
        self._closed = False

    def __repr__(self) -> str:
        return f"CachedQuery(key={self.key!r}, status={self._state.status.value})"

    # --- State ---

    @property
    def state(self) -> QueryState[T]:
        return self._state

    @property
    def data(self) -> Optional[T]:
        return self._state.data

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[Exception]:
        return self._state.error

    @property
    def is_from_cache(self) -> bool:
        return self._state.is_from_cache

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call listener with every new state.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: Any) -> None:
        if self._closed:
            return
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"Query listener failed for key {self.key}: {e}", exc_info=True)

    # --- Lifecycle ---

    async def bind(self) -> QueryState[T]:
        """
        Resolve the query against the cache, fetching if needed.

        Returns once the caller has something to show: immediately on a cache
        hit (stale hits keep refreshing in the background), after the
        foreground fetch on a miss.

        Returns:
            The query state after binding.
        """
        if self._closed:
            raise RuntimeError(f"Cannot bind closed query for key {self.key}")

        if not self.options.enabled:
            self._update(data=None, loading=False, status=QueryStatus.IDLE)
            return self._state

        store = self._manager.store
        entry = store.get_entry(self.key)
        if entry is None:
            await self._foreground_fetch(force=False)
            return self._state

        if is_stale(entry, store.now()):
            logger.debug(f"Serving stale entry for key {self.key}; refreshing in background.")
            self._update(
                data=entry.data,
                loading=False,
                is_from_cache=True,
                status=QueryStatus.BACKGROUND_REFRESHING,
            )
            self._refresh_task = asyncio.create_task(self._background_refresh())
        else:
            self._update(
                data=entry.data,
                loading=False,
                is_from_cache=True,
                status=QueryStatus.SETTLED,
            )
        return self._state

    async def refresh(self) -> QueryState[T]:
        """Refetch in the foreground, bypassing the cache read."""
        if self._closed:
            raise RuntimeError(f"Cannot refresh closed query for key {self.key}")
        if self.options.enabled:
            await self._foreground_fetch(force=True)
        return self._state

    async def wait_for_refresh(self) -> QueryState[T]:
        """Wait for an outstanding background refresh, if any."""
        task = self._refresh_task
        if task is not None:
            await task
        return self._state

    def close(self) -> None:
        """Tear the query down. Pending fetch results will be discarded."""
        self._closed = True
        self._listeners.clear()

    # --- Fetching ---

    async def _foreground_fetch(self, force: bool) -> None:
        self._update(loading=True, status=QueryStatus.LOADING)
        try:
            data, from_cache = await self._manager.fetch_and_store(
                self.key,
                self._fetch,
                self.options,
                force=force,
                should_store=lambda: not self._closed,
            )
        except Exception as e:
            logger.error(f"Fetch failed for key {self.key}: {e}", exc_info=True)
            self._update(loading=False, error=e, status=QueryStatus.ERRORED)
            return

        if self._closed:
            logger.debug(f"Discarding fetch result for closed query {self.key}.")
            return
        self._update(
            data=data,
            loading=False,
            error=None,
            is_from_cache=from_cache,
            status=QueryStatus.SETTLED,
        )

    async def _background_refresh(self) -> None:
        with background_refresh():
            try:
                data, from_cache = await self._manager.fetch_and_store(
                    self.key,
                    self._fetch,
                    self.options,
                    force=False,
                    should_store=lambda: not self._closed,
                )
            except Exception as e:
                # Keep showing the stale value
                logger.error(f"Background refresh failed for key {self.key}: {e}", exc_info=True)
                self._update(error=e, status=QueryStatus.SETTLED)
                return

            if self._closed:
                logger.debug(f"Discarding background refresh result for closed query {self.key}.")
                return
            logger.info(f"Background refresh completed for key {self.key}.")
            self._update(
                data=data,
                error=None,
                is_from_cache=from_cache,
                status=QueryStatus.SETTLED,
            )


class CacheManager:
    """
    Central manager for cached reads.

    Creates bound queries over a CacheStore, coalesces concurrent fetches
    for the same key through a RequestRegistry and exposes the invalidator
    used by write paths.
    """

    def __init__(
        self,
        store: CacheStore,
        invalidator: Optional[CacheInvalidator] = None,
        request_registry: Optional[RequestRegistry] = None,
        coalesce_requests: bool = True,
        default_options: QueryOptions = QueryOptions(),
    ):
        """
        Initialise the CacheManager.

        Args:
            store: The CacheStore holding both tiers.
            invalidator: The CacheInvalidator for write paths. If None, one
                         with the default marketplace families is created.
            request_registry: Registry for in-flight fetches. If None, a
                              default instance is created.
            coalesce_requests: Make concurrent fetches of one key share the
                               first request. When False every caller fetches
                               independently.
            default_options: Options used when a query does not pass its own.
        """
        logger.info("Initialising CacheManager...")
        self.store = store
        self.invalidator = invalidator or CacheInvalidator(store)
        self.registry = request_registry or RequestRegistry()
        self.coalesce_requests = coalesce_requests
        self.default_options = default_options
        self._background_tasks: set[asyncio.Task[Any]] = set()
        logger.info(f"CacheManager initialised (coalesce_requests={coalesce_requests}).")

    def _resolve_options(self, options: Optional[QueryOptions], overrides: dict[str, Any]) -> QueryOptions:
        resolved = options or self.default_options
        if overrides:
            resolved = replace(resolved, **overrides)
        return resolved

    # --- Query construction ---

    def query(
        self,
        namespace: str,
        fetch: Fetcher[T],
        params: Optional[dict[str, Any]] = None,
        options: Optional[QueryOptions] = None,
        **overrides: Any,
    ) -> CachedQuery[T]:
        """
        Bind a fetch operation to the key for namespace and params.

        Args:
            namespace: Resource family, e.g. ``"courses"``.
            fetch: Coroutine function returning the payload.
            params: Query parameters; order does not matter.
            options: QueryOptions; keyword overrides (ttl, persist, enabled)
                     are applied on top.

        Returns:
            An unbound CachedQuery. Call bind() to resolve it.
        """
        key = generate_cache_key(namespace, params)
        return CachedQuery(self, key, fetch, self._resolve_options(options, overrides))

    def document_query(
        self,
        collection: str,
        doc_id: Optional[str],
        fetch: Fetcher[Optional[T]],
        options: Optional[QueryOptions] = None,
        **overrides: Any,
    ) -> CachedQuery[Optional[T]]:
        """
        Bind a single-document fetch. The query is disabled while doc_id is empty.
        """
        resolved = self._resolve_options(options, overrides)
        if not doc_id:
            resolved = replace(resolved, enabled=False)
        key = generate_doc_key(collection, doc_id)
        return CachedQuery(self, key, fetch, resolved)

    def collection(
        self,
        document_store: "IDocumentStore",
        collection: str,
        constraints: Sequence[Any] = (),
        options: Optional[QueryOptions] = None,
        **overrides: Any,
    ) -> CachedQuery[list[dict[str, Any]]]:
        """
        Cached query over a document store collection.

        The key combines the collection name with the text form of every
        constraint, so different filters on one collection never collide.
        """
        fetch = collection_fetcher(document_store, collection, constraints)
        return self.query(
            collection,
            fetch,
            {"constraints": [str(c) for c in constraints]},
            options,
            **overrides,
        )

    def document(
        self,
        document_store: "IDocumentStore",
        collection: str,
        doc_id: Optional[str],
        options: Optional[QueryOptions] = None,
        **overrides: Any,
    ) -> CachedQuery[Optional[dict[str, Any]]]:
        """Cached read of one document from a document store collection."""
        fetch = document_fetcher(document_store, collection, doc_id)
        return self.document_query(collection, doc_id, fetch, options, **overrides)

    # --- Fetching ---

    @asynccontextmanager
    async def _request_slot(self, key: str) -> AsyncIterator[bool]:
        if not self.coalesce_requests:
            yield False
            return
        async with self.registry.get_lock(key) as contended:
            yield contended

    async def fetch_and_store(
        self,
        key: str,
        fetch: Fetcher[T],
        options: QueryOptions,
        force: bool = False,
        should_store: Callable[[], bool] = lambda: True,
    ) -> tuple[T, bool]:
        """
        Run a fetch for a key and cache its result.

        With coalescing enabled, a request arriving while another fetch for
        the same key is in flight waits for it and reuses the freshly cached
        value instead of fetching again (unless force is set).

        Args:
            key: Cache key to store the result under.
            fetch: Coroutine function producing the payload.
            options: Supplies ttl and persist for the write.
            force: Always fetch, even if a concurrent request just cached a value.
            should_store: Checked after the fetch; the result is only cached
                          if it returns True.

        Returns:
            (data, from_cache) where from_cache is True if the value came from
            a concurrent request's cache write rather than this fetch.

        Raises:
            Exception: Whatever the fetch raised.
        """
        async with self._request_slot(key) as contended:
            if contended and not force:
                entry = self.store.get_entry(key)
                if entry is not None and not is_stale(entry, self.store.now()):
                    logger.debug(f"Reusing value cached by concurrent request for key {key}.")
                    return entry.data, True

            logger.debug(f"Fetching data for key {key}.")
            result = await fetch()
            if result is None:
                # Nothing to cache (e.g. document does not exist)
                logger.debug(f"Fetch for key {key} returned None. Not caching.")
            elif should_store():
                self.store.set(key, result, options.ttl, options.persist)
            return result, False

    # --- Decorator ---

    def cached(
        self,
        namespace: Optional[str] = None,
        ttl: Optional[int] = None,
        persist: Optional[bool] = None,
    ):
        """
        Decorator caching the result of a coroutine function.

        The key is built from the namespace (default: the function's qualified
        name) and the call's bound arguments. Stale results are returned at
        once and refreshed in the background; fetch errors propagate.

        Args:
            namespace: Key namespace. Defaults to ``module.qualname``.
            ttl: TTL in milliseconds. Uses the manager default if None.
            persist: Write to the durable tier. Uses the manager default if None.
        """
        overrides: dict[str, Any] = {}
        if ttl is not None:
            overrides["ttl"] = ttl
        if persist is not None:
            overrides["persist"] = persist
        options = self._resolve_options(None, overrides)

        def decorator(func):
            if not inspect.iscoroutinefunction(func):
                raise TypeError(f"CacheManager.cached requires a coroutine function, got {func!r}")
            key_namespace = namespace or f"{func.__module__}.{func.__qualname__}"
            signature = inspect.signature(func)

            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                key = generate_cache_key(key_namespace, dict(bound.arguments))
                fetch = functools.partial(func, *args, **kwargs)

                entry = self.store.get_entry(key)
                if entry is not None:
                    if is_stale(entry, self.store.now()):
                        self._spawn_refresh(key, fetch, options)
                    return entry.data

                try:
                    result, _ = await self.fetch_and_store(key, fetch, options)
                except Exception as e:
                    logger.error(
                        f"Error executing cached function {func.__name__} for key {key}: {e}",
                        exc_info=True,
                    )
                    raise
                return result

            return wrapper

        return decorator

    def _spawn_refresh(self, key: str, fetch: Fetcher[Any], options: QueryOptions) -> None:
        async def _refresh() -> None:
            with background_refresh():
                try:
                    await self.fetch_and_store(key, fetch, options)
                except Exception as e:
                    logger.error(f"Background refresh failed for key {key}: {e}", exc_info=True)

        task = asyncio.create_task(_refresh())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def drain(self) -> None:
        """Wait for background refreshes started by cached functions."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))
