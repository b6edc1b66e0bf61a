"""
tests/test_invalidation_service.py

Cache invalidation signal.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from app.cache.keys import SUBMISSIONS_SNAPSHOT_KEY, dashboard_key, metric_snapshot_key
from app.services.invalidation_service import InvalidationSignal


@pytest.fixture()
def executor():
    pool = ThreadPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture()
def seeded(cache):
    cache.set(metric_snapshot_key("income"), {"values": [1]}, 60)
    cache.set(metric_snapshot_key("savings"), {"values": [2]}, 60)
    cache.set(SUBMISSIONS_SNAPSHOT_KEY, {"rows": []}, 60)
    cache.set(dashboard_key("{}"), {"sample_size": 0}, 60)
    cache.set(dashboard_key('{"city":["Pune"]}'), {"sample_size": 0}, 60)
    cache.set("unrelated:key", 1, 60)
    return cache


class TestEvictAll:
    def test_removes_every_snapshot_family(self, seeded, memory_backend) -> None:
        counts = InvalidationSignal(seeded).evict_all()
        assert counts == {"metrics": 2, "submissions": 1, "dashboards": 2}
        assert memory_backend.keys() == ["unrelated:key"]

    def test_double_invalidation_is_noop(self, seeded) -> None:
        signal = InvalidationSignal(seeded)
        signal.evict_all()
        assert signal.evict_all() == {"metrics": 0, "submissions": 0, "dashboards": 0}

    def test_failing_cache_never_raises(self, failing_cache) -> None:
        assert InvalidationSignal(failing_cache).evict_all() == {"metrics": 0, "submissions": 0, "dashboards": 0}


class TestFire:
    def test_runs_in_background(self, seeded, memory_backend, executor) -> None:
        future = InvalidationSignal(seeded, executor=executor).fire()
        assert future.result(timeout=5)["dashboards"] == 2
        assert memory_backend.keys() == ["unrelated:key"]

    def test_errors_are_logged_not_raised_to_caller(self, executor, caplog) -> None:
        class _Broken:
            def invalidate(self, key):
                raise RuntimeError("boom")

        future = InvalidationSignal(_Broken(), executor=executor).fire()  # type: ignore[arg-type]
        with pytest.raises(RuntimeError):
            future.result(timeout=5)
        executor.shutdown(wait=True)
        assert any("cache_evict_failed" in record.getMessage() for record in caplog.records)
