from debrid_search.services.cache import TTLCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_miss_is_distinct_from_cached_none():
    cache = TTLCache()
    assert cache.get("absent") is TTLCache.MISS

    cache.set("empty", None)
    assert cache.get("empty") is None


def test_entries_expire():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("short", "a", ttl=5)
    cache.set("long", "b")

    clock.now += 10

    assert cache.get("short") is TTLCache.MISS
    assert cache.get("long") == "b"
    clock.now += 100
    assert cache.cleanup_expired() == 1
    assert cache.get_stats()["size"] == 0


def test_update_ttl_extends_entry():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("key", 1, ttl=5)

    assert cache.update_ttl("key", 60) is True
    assert cache.update_ttl("missing", 60) is False
    clock.now += 30
    assert cache.get("key") == 1


def test_get_by_pattern_and_delete():
    cache = TTLCache()
    cache.set("metadata_a", 1)
    cache.set("metadata_b", 2)
    cache.set("jikan:x", 3)

    keys = [entry.key for entry in cache.get_by_pattern("^metadata_")]
    assert keys == ["metadata_a", "metadata_b"]
    assert cache.delete("metadata_a") is True
    assert cache.delete("metadata_a") is False


def test_oldest_entry_is_evicted_at_capacity():
    cache = TTLCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.get("b") is TTLCache.MISS
    assert cache.get("a") == 10
    assert cache.get("c") == 3
    assert cache.get_stats()["evictions"] == 1


def test_stats_report_hit_rate():
    cache = TTLCache()
    cache.set("a", 1)
    cache.get("a")
    cache.get("b")

    stats = cache.get_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["sets"] == 1
    assert stats["hit_rate"] == 0.5

    cache.clear()
    assert cache.get_stats()["hits"] == 0


def test_zero_ttl_expires_immediately():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("gone", "a", ttl=0)

    assert cache.get("gone") is TTLCache.MISS
