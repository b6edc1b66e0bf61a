"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_CACHE_BACKENDS = {"redis", "memory"}

DEFAULT_METRIC_SNAPSHOT_TTL = 60 * 60
DEFAULT_SUBMISSIONS_SNAPSHOT_TTL = 60 * 60
DEFAULT_DASHBOARD_TTL = 24 * 60 * 60
MIN_DASHBOARD_TTL = 60


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_ttl_env(name: str, default: int) -> int:
    """
    Read a TTL in seconds; anything that is not a positive integer falls back.
    """

    value = _get_int_env(name, default)
    return value if value > 0 else default


@dataclass(frozen=True)
class StatsSettings:
    """
    Thresholds and paging for the statistics engine.
    """

    min_cohort_size: int = 5
    leaderboard_min: int = 10
    store_page_size: int = 1000


@dataclass(frozen=True)
class CacheSettings:
    """
    Snapshot cache backend and TTLs.
    """

    backend: str = "redis"
    redis_url: str = "redis://localhost:6379/0"
    socket_timeout_seconds: float = 2.0
    metric_snapshot_ttl_seconds: int = DEFAULT_METRIC_SNAPSHOT_TTL
    submissions_snapshot_ttl_seconds: int = DEFAULT_SUBMISSIONS_SNAPSHOT_TTL
    dashboard_ttl_seconds: int = DEFAULT_DASHBOARD_TTL


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Background snapshot warm-up. An interval of 0 disables the job.
    """

    snapshot_warm_interval_seconds: int = 0


@lru_cache(maxsize=1)
def get_stats_settings() -> StatsSettings:
    """
    Return cached statistics settings from environment variables.
    """

    return StatsSettings(
        min_cohort_size=max(0, _get_int_env("MIN_COHORT_SIZE", 5)),
        leaderboard_min=max(0, _get_int_env("LEADERBOARD_MIN", 10)),
        store_page_size=max(1, _get_int_env("STORE_PAGE_SIZE", 1000)),
    )


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    """
    Return cached snapshot-cache settings from environment variables.

    Raises RuntimeError if CACHE_BACKEND names an unknown backend.
    """

    backend = _get_str_env("CACHE_BACKEND", "redis").lower()
    if backend not in _ALLOWED_CACHE_BACKENDS:
        raise RuntimeError(
            f"CACHE_BACKEND '{backend}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_CACHE_BACKENDS)}."
        )

    return CacheSettings(
        backend=backend,
        redis_url=_get_str_env("REDIS_URL", "redis://localhost:6379/0"),
        socket_timeout_seconds=max(0.1, _get_float_env("REDIS_SOCKET_TIMEOUT_SECONDS", 2.0)),
        metric_snapshot_ttl_seconds=_get_ttl_env("METRIC_SNAPSHOT_TTL", DEFAULT_METRIC_SNAPSHOT_TTL),
        submissions_snapshot_ttl_seconds=_get_ttl_env(
            "SUBMISSIONS_SNAPSHOT_TTL", DEFAULT_SUBMISSIONS_SNAPSHOT_TTL
        ),
        dashboard_ttl_seconds=max(
            MIN_DASHBOARD_TTL, _get_ttl_env("DASHBOARD_TTL", DEFAULT_DASHBOARD_TTL)
        ),
    )


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return snapshot warm-up scheduler settings.
    """

    return SchedulerSettings(
        snapshot_warm_interval_seconds=max(0, _get_int_env("SNAPSHOT_WARM_INTERVAL_SECONDS", 0)),
    )
