from coursecache.cache.cache_invalidation import CacheInvalidator, PrefixInvalidation
from coursecache.cache.cache_store import CacheStore
from coursecache.cache.durable_store import MemoryDurableStore

# Demonstration only: an in-memory store populated with the keys the screens use.

store = CacheStore(durable_store=MemoryDurableStore())
for key in (
    "courses_home",
    "courses_grid_home",
    "courses_doc_c1",
    "mentors_showcase",
    "enrollment_counts",
    "about_section_stats",
    "showcase_gallery",
):
    store.set(key, key, ttl=60_000, persist=True)


def show(label):
    present = [k for k in ("courses_home", "courses_grid_home", "courses_doc_c1", "mentors_showcase",
                           "enrollment_counts", "about_section_stats", "showcase_gallery")
               if store.get(k) is not None]
    print(f"{label}: {present}")


invalidator = CacheInvalidator(store)
print("--- Demonstrating Cache Invalidation ---")
show("Before")

print("\nAdmin edits a course:")
invalidator.invalidate_course_cache()
show("After invalidate_course_cache")

print("\nAdmin approves an enrollment:")
invalidator.invalidate_enrollment_cache()
show("After invalidate_enrollment_cache")

print("\nCalling it again changes nothing:")
invalidator.invalidate_enrollment_cache()
show("After second invalidate_enrollment_cache")

print("\n--- Registering an extra family ---")
store.set("announcements_c1", ["Class moved to Friday"], ttl=60_000)
invalidator.register("announcements", [PrefixInvalidation("announcements")])
invalidator.trigger_invalidation("announcements")
print(f"announcements_c1 after invalidation: {store.get('announcements_c1')}")
