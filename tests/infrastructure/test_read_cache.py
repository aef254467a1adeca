"""Unit tests for the TTL read cache."""

from storefront.infrastructure.persistence.read_cache import ReadCache
from tests.fakes import FakeClock


def test_entry_fresh_within_ttl():
    clock = FakeClock()
    cache = ReadCache(ttl=1.0, clock=clock)
    cache.put("products", [{"id": "p1"}], '"v1"')

    clock.advance(0.99)
    entry = cache.get("products")

    assert entry.records == [{"id": "p1"}]
    assert entry.version == '"v1"'


def test_entry_expires_at_ttl():
    clock = FakeClock()
    cache = ReadCache(ttl=1.0, clock=clock)
    cache.put("products", [], None)

    clock.advance(1.0)

    assert cache.get("products") is None
    assert cache.peek("products") is not None


def test_entries_are_isolated_from_callers():
    cache = ReadCache(clock=FakeClock())
    records = [{"id": "p1", "stock": 1}]
    cache.put("products", records, None)

    records[0]["stock"] = 50
    cache.get("products").records[0]["stock"] = 99

    assert cache.get("products").records == [{"id": "p1", "stock": 1}]


def test_invalidate_and_clear():
    cache = ReadCache(clock=FakeClock())
    cache.put("a", [], None)
    cache.put("b", [], None)

    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None
    assert cache.get("b") is not None

    cache.clear()
    assert cache.peek("b") is None


def test_stats():
    clock = FakeClock()
    cache = ReadCache(ttl=2.0, clock=clock)
    cache.put("a", [], None)
    clock.advance(3)
    cache.put("b", [], None)

    assert cache.stats() == {"total_entries": 2, "fresh_entries": 1, "ttl_seconds": 2.0}
