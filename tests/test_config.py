"""
tests/test_config.py

Environment-driven settings.
"""

from __future__ import annotations

import pytest

from app.config import get_cache_settings, get_scheduler_settings, get_stats_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_stats_settings.cache_clear()
    get_cache_settings.cache_clear()
    get_scheduler_settings.cache_clear()
    yield
    get_stats_settings.cache_clear()
    get_cache_settings.cache_clear()
    get_scheduler_settings.cache_clear()


class TestStatsSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("MIN_COHORT_SIZE", "LEADERBOARD_MIN", "STORE_PAGE_SIZE"):
            monkeypatch.delenv(name, raising=False)
        settings = get_stats_settings()
        assert (settings.min_cohort_size, settings.leaderboard_min, settings.store_page_size) == (5, 10, 1000)

    def test_overrides_and_bad_values(self, monkeypatch) -> None:
        monkeypatch.setenv("MIN_COHORT_SIZE", "3")
        monkeypatch.setenv("LEADERBOARD_MIN", "not-a-number")
        monkeypatch.setenv("STORE_PAGE_SIZE", "0")
        settings = get_stats_settings()
        assert settings.min_cohort_size == 3
        assert settings.leaderboard_min == 10
        assert settings.store_page_size == 1


class TestCacheSettings:
    def test_ttl_defaults(self, monkeypatch) -> None:
        for name in ("METRIC_SNAPSHOT_TTL", "SUBMISSIONS_SNAPSHOT_TTL", "DASHBOARD_TTL"):
            monkeypatch.delenv(name, raising=False)
        settings = get_cache_settings()
        assert settings.metric_snapshot_ttl_seconds == 3600
        assert settings.submissions_snapshot_ttl_seconds == 3600
        assert settings.dashboard_ttl_seconds == 86400

    def test_dashboard_ttl_floor(self, monkeypatch) -> None:
        monkeypatch.setenv("DASHBOARD_TTL", "5")
        assert get_cache_settings().dashboard_ttl_seconds == 60

    def test_non_positive_ttl_falls_back(self, monkeypatch) -> None:
        monkeypatch.setenv("METRIC_SNAPSHOT_TTL", "-1")
        assert get_cache_settings().metric_snapshot_ttl_seconds == 3600

    def test_backend_selection(self, monkeypatch) -> None:
        monkeypatch.setenv("CACHE_BACKEND", " Memory ")
        assert get_cache_settings().backend == "memory"

    def test_unknown_backend(self, monkeypatch) -> None:
        monkeypatch.setenv("CACHE_BACKEND", "memcached")
        with pytest.raises(RuntimeError):
            get_cache_settings()


class TestSchedulerSettings:
    def test_disabled_by_default(self, monkeypatch) -> None:
        monkeypatch.delenv("SNAPSHOT_WARM_INTERVAL_SECONDS", raising=False)
        assert get_scheduler_settings().snapshot_warm_interval_seconds == 0

    def test_negative_interval_disables(self, monkeypatch) -> None:
        monkeypatch.setenv("SNAPSHOT_WARM_INTERVAL_SECONDS", "-30")
        assert get_scheduler_settings().snapshot_warm_interval_seconds == 0
