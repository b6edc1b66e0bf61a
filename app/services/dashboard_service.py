"""
app/services/dashboard_service.py

Dashboard payload builder.

Per request::

    CHECK_CACHE ─ hit ──────────────────────────────────────────────► return
         │
         └ miss → LOAD_SNAPSHOT → APPLY_FILTERS → AGGREGATE → WRITE_CACHE → return

Filters are applied in memory over the population snapshot. When the
snapshot is empty and filters are present, the builder runs one filtered
query against the store instead of returning an empty cohort from a cold
cache. That fallback bypasses the snapshot cache entirely: neither its rows
nor the payload built from them are cached.

A payload built from a partial snapshot (store failed mid-pagination) is
served with ``degraded=True`` and is not cached either.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence

from app.cache.keys import dashboard_key
from app.cache.snapshot_cache import SnapshotCache
from app.config import CacheSettings, StatsSettings
from app.domain.filters import CohortFilters
from app.domain.submission import Submission
from app.services.snapshot_service import SnapshotLoader
from db.repositories.base import SubmissionStore
from stats.aggregation import (
    cohort_summary_of,
    facets_of,
    global_averages_of,
    leaderboards_of,
    monthly_emi_of,
    warnings_for,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardResult:
    """
    Outcome of one dashboard request.

    ``cached`` is ``True`` when the payload came straight from the cache.
    ``degraded`` is ``True`` when the payload was computed from incomplete
    data: a partial snapshot, or a failed fallback query.
    """

    payload: dict[str, Any]
    cached: bool = False
    degraded: bool = False


class DashboardService:
    """
    Builds and caches the composite dashboard payload for a filter set.
    """

    def __init__(
        self,
        cache: SnapshotCache,
        store: SubmissionStore,
        loader: SnapshotLoader,
        *,
        stats_settings: StatsSettings,
        cache_settings: CacheSettings,
    ) -> None:
        self._cache = cache
        self._store = store
        self._loader = loader
        self._stats_settings = stats_settings
        self._cache_settings = cache_settings

    def build(self, filters: CohortFilters) -> DashboardResult:
        key = dashboard_key(filters.fingerprint())

        cached = self._cache.get(key)
        if isinstance(cached, dict):
            logger.debug("dashboard cache hit key=%s", key)
            return DashboardResult(payload=cached, cached=True)

        snapshot = self._loader.load_population()
        degraded = not snapshot.complete
        used_fallback = False
        rows: list[Submission] = snapshot.rows

        if not filters.is_empty():
            if rows:
                rows = filters.apply(rows)
            else:
                logger.info("dashboard snapshot empty; running filtered store query filters=%s", filters.to_dict())
                fallback = self._store.fetch_filtered_result(filters)
                rows = fallback.rows
                used_fallback = True
                degraded = not fallback.complete

        payload = self.aggregate(rows, filters=filters)

        if used_fallback or degraded:
            logger.info(
                "dashboard payload not cached key=%s fallback=%s degraded=%s",
                key,
                used_fallback,
                degraded,
            )
        else:
            self._cache.set(key, payload, self._cache_settings.dashboard_ttl_seconds)

        return DashboardResult(payload=payload, cached=False, degraded=degraded)

    def aggregate(
        self,
        rows: Sequence[Submission],
        *,
        filters: CohortFilters | None = None,
    ) -> dict[str, Any]:
        """Compute the full payload for an already-filtered cohort."""
        sample_size = len(rows)
        warnings = warnings_for(
            sample_size,
            min_cohort_size=self._stats_settings.min_cohort_size,
            leaderboard_min=self._stats_settings.leaderboard_min,
        )

        return {
            "generated_at": datetime.now(tz=timezone.utc).isoformat(),
            "ttl_seconds": self._cache_settings.dashboard_ttl_seconds,
            "filters": (filters or CohortFilters()).to_dict(),
            "sample_size": sample_size,
            "cohort_summary": cohort_summary_of(rows),
            "leaderboards": leaderboards_of(rows, enabled=not warnings["leaderboard_small"]),
            "averages": {
                "monthly_emi": monthly_emi_of(rows),
                "global": global_averages_of(rows),
            },
            "facets": facets_of(rows),
            "warnings": warnings,
        }
