"""
tests/test_scheduler.py

Snapshot warm-up job and scheduler registration.
"""

from __future__ import annotations

from app.cache.keys import SUBMISSIONS_SNAPSHOT_KEY, metric_snapshot_key
from app.config import SchedulerSettings
from app.scheduler.jobs import WARM_JOB_ID, build_scheduler, warm_snapshots
from conftest import FakeStore
from stats.metrics import ALLOWED_METRICS


class TestBuildScheduler:
    def test_disabled_interval_registers_nothing(self) -> None:
        scheduler = build_scheduler(SchedulerSettings(snapshot_warm_interval_seconds=0))
        assert scheduler.get_jobs() == []

    def test_interval_registers_warm_job(self) -> None:
        scheduler = build_scheduler(SchedulerSettings(snapshot_warm_interval_seconds=300))
        assert [job.id for job in scheduler.get_jobs()] == [WARM_JOB_ID]


class TestWarmSnapshots:
    def test_warms_every_snapshot(self, cache, store) -> None:
        outcome = warm_snapshots(cache=cache, store=store)
        assert all(outcome.values())
        assert cache.get(SUBMISSIONS_SNAPSHOT_KEY) is not None
        for metric in ALLOWED_METRICS:
            assert cache.get(metric_snapshot_key(metric)) is not None

    def test_partial_pull_reported(self, cache, population) -> None:
        outcome = warm_snapshots(cache=cache, store=FakeStore(population, fail_from_page=0))
        assert not any(outcome.values())
        assert cache.get(SUBMISSIONS_SNAPSHOT_KEY) is None
