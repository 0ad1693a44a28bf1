import asyncio
import logging

from coursecache.cache.cache_manager import CacheManager
from coursecache.cache.cache_store import CacheStore
from coursecache.cache.durable_store import MemoryDurableStore
from coursecache.utils.logger import setup_logger


async def fetch_courses() -> list[dict]:
    """Stands in for a paid collection read against the document database."""
    print("--- Running fetch_courses() ---")
    await asyncio.sleep(0.1)  # Simulate network
    return [{"id": "c1", "title": "Oil Painting"}, {"id": "c2", "title": "Sculpture"}]


async def main():
    setup_logger("coursecache", level=logging.DEBUG)

    manager = CacheManager(CacheStore(durable_store=MemoryDurableStore()))

    print("--- Cold cache: foreground fetch ---")
    # Short TTL so the stale window is reachable in a demo
    query = manager.query("courses_home", fetch_courses, ttl=1_000, persist=True)
    query.subscribe(lambda state: print(f"  state -> {state.status.value}, from cache: {state.is_from_cache}"))
    await query.bind()

    print("\n--- Second bind inside TTL: served from cache ---")
    await manager.query("courses_home", fetch_courses, ttl=1_000).bind()

    print("\n--- After 80% of TTL: stale value now, refresh in background ---")
    await asyncio.sleep(0.85)
    stale = manager.query("courses_home", fetch_courses, ttl=1_000)
    stale.subscribe(lambda state: print(f"  state -> {state.status.value}, from cache: {state.is_from_cache}"))
    await stale.bind()
    await stale.wait_for_refresh()

    print("\n--- Concurrent cold binds share one fetch ---")
    manager.invalidator.invalidate_course_cache()
    await asyncio.gather(
        manager.query("courses_home", fetch_courses).bind(),
        manager.query("courses_home", fetch_courses).bind(),
    )

    print("\n--- Decorated coroutine ---")

    @manager.cached(namespace="mentors", ttl=60_000)
    async def list_mentors(limit: int = 3):
        print(f"--- Running list_mentors({limit}) ---")
        return [f"mentor-{i}" for i in range(limit)]

    print(await list_mentors())
    print(await list_mentors(limit=3))  # Should be cached


if __name__ == "__main__":
    asyncio.run(main())
