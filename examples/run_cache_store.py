import logging
import tempfile

from coursecache.cache.cache_store import CacheStore
from coursecache.cache.durable_store import DiskDurableStore


def main():
    cache_dir = tempfile.mkdtemp(prefix="coursecache_")

    store = CacheStore(durable_store=DiskDurableStore(cache_dir), memory_maxsize=10)

    courses = [{"id": "c1", "title": "Oil Painting"}, {"id": "c2", "title": "Sculpture"}]

    print("\n--- Setting values ---")
    store.set("courses_home", courses, ttl=60_000, persist=True)
    store.set("mentors_showcase", [{"id": "m1", "name": "Ana"}], ttl=60_000)

    print("\n--- Getting values (volatile tier) ---")
    print(f"Get courses_home: {store.get('courses_home')}")
    print(f"Stale? {store.is_stale('courses_home')}")
    store.close()

    print("\n--- Simulated restart: only persisted entries survive ---")
    restarted = CacheStore(durable_store=DiskDurableStore(cache_dir))
    print(f"Get courses_home: {restarted.get('courses_home')}")
    print(f"Get mentors_showcase: {restarted.get('mentors_showcase')}")

    print("\n--- Prefix clear ---")
    restarted.clear_by_prefix("courses")
    print(f"Get courses_home after clear: {restarted.get('courses_home')}")

    restarted.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("coursecache.cache.cache_store").setLevel(logging.DEBUG)
    main()
