"""
tests/test_snapshot_cache.py

SnapshotCache over the in-memory backend, and graceful degradation over a
backend that always fails.
"""

from __future__ import annotations

import pytest

from app.cache.backends import CacheUnavailableError, InMemoryCacheBackend
from app.cache.snapshot_cache import SnapshotCache


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSnapshotCache:
    def test_write_then_read_returns_identical_data(self, cache: SnapshotCache) -> None:
        payload = {"values": [1.5, 2.0, 9.25], "rows": [{"id": "a", "city": "Pune"}], "captured_at": "t"}
        assert cache.set("snapshot:income", payload, 60) is True
        assert cache.get("snapshot:income") == payload

    def test_miss(self, cache: SnapshotCache) -> None:
        assert cache.get("snapshot:nothing") is None

    def test_set_replaces_whole_value(self, cache: SnapshotCache) -> None:
        cache.set("k", {"a": 1, "b": 2}, 60)
        cache.set("k", {"c": 3}, 60)
        assert cache.get("k") == {"c": 3}

    def test_undecodable_entry_is_a_miss(self, memory_backend: InMemoryCacheBackend, cache: SnapshotCache) -> None:
        memory_backend.set("k", "{not json", 60)
        assert cache.get("k") is None

    def test_unserializable_value_not_written(self, cache: SnapshotCache, memory_backend: InMemoryCacheBackend) -> None:
        assert cache.set("k", {"bad": object()}, 60) is False
        assert memory_backend.keys() == []

    def test_double_invalidate_is_noop(self, cache: SnapshotCache) -> None:
        cache.set("snapshot:income", [1, 2], 60)
        assert cache.invalidate("snapshot:income") == 1
        assert cache.invalidate("snapshot:income") == 0
        assert cache.get("snapshot:income") is None

    def test_invalidate_prefix(self, cache: SnapshotCache, memory_backend: InMemoryCacheBackend) -> None:
        cache.set("dashboard:{}", {}, 60)
        cache.set('dashboard:{"city":["Pune"]}', {}, 60)
        cache.set("snapshot:income", [], 60)
        assert cache.invalidate_prefix("dashboard:") == 2
        assert memory_backend.keys() == ["snapshot:income"]
        assert cache.invalidate_prefix("dashboard:") == 0

    def test_ping(self, cache: SnapshotCache) -> None:
        assert cache.ping() is True


class TestInMemoryExpiry:
    def test_entry_expires_after_ttl(self) -> None:
        clock = _Clock()
        cache = SnapshotCache(InMemoryCacheBackend(clock=clock))
        cache.set("k", [1], 60)

        clock.now += 59
        assert cache.get("k") == [1]
        clock.now += 1
        assert cache.get("k") is None

    def test_unread_expired_entries_are_swept_on_write(self) -> None:
        clock = _Clock()
        backend = InMemoryCacheBackend(clock=clock, sweep_every=50)
        for i in range(1000):
            backend.set(f"dashboard:{i}", "{}", 60)

        clock.now = 10_000.0
        for i in range(50):
            backend.set(f"dashboard:fresh-{i}", "{}", 60)

        assert len(backend.keys()) == 50
        assert backend.stored_count() == 50

    def test_live_entries_survive_sweep(self) -> None:
        clock = _Clock()
        backend = InMemoryCacheBackend(clock=clock, sweep_every=1)
        backend.set("snapshot:income", "[1]", 3600)
        backend.set("dashboard:old", "{}", 10)

        clock.now += 30
        backend.set("dashboard:new", "{}", 60)

        assert backend.stored_count() == 2
        assert backend.get("snapshot:income") == "[1]"


class TestFailingBackend:
    def test_get_degrades_to_miss(self, failing_cache: SnapshotCache) -> None:
        assert failing_cache.get("snapshot:income") is None

    def test_set_reports_failure(self, failing_cache: SnapshotCache) -> None:
        assert failing_cache.set("snapshot:income", [1], 60) is False

    def test_invalidate_degrades_to_zero(self, failing_cache: SnapshotCache) -> None:
        assert failing_cache.invalidate("snapshot:income") == 0
        assert failing_cache.invalidate_prefix("dashboard:") == 0

    def test_ping_false(self, failing_cache: SnapshotCache) -> None:
        assert failing_cache.ping() is False

    def test_backend_itself_raises(self, failing_cache: SnapshotCache) -> None:
        with pytest.raises(CacheUnavailableError):
            failing_cache.backend.get("k")
