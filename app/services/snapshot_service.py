"""
app/services/snapshot_service.py

Snapshot acquisition: cache first, paginated store pull on miss.

Two snapshot families are served:

    population : every submission, unsorted         (submissions_snapshot:all)
    metric     : one metric's ascending values plus
                  the backing rows for cohort slicing  (snapshot:<metric>)

On a miss the loader pulls the whole population through
:meth:`SubmissionStore.fetch_all` and writes the snapshot back through the
:class:`SnapshotCache` as one whole value. Concurrent misses for the same key
share a single rebuild via :class:`SingleFlight`.

Partial pulls
-------------
When the store fails mid-pagination the rows read so far are served for the
current request (flagged ``complete=False``) but are not cached, so the next
request retries the store instead of pinning a truncated population for a
full TTL.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from app.cache.keys import SUBMISSIONS_SNAPSHOT_KEY, metric_snapshot_key
from app.cache.single_flight import SingleFlight
from app.cache.snapshot_cache import SnapshotCache
from app.config import CacheSettings, StatsSettings
from app.domain.submission import Submission
from app.logging_utils import elapsed_ms, log_event
from db.repositories.base import SubmissionStore
from db.repositories.types import FetchResult
from stats.metrics import metric_values, validate_metric

logger = logging.getLogger(__name__)

_REBUILDS = SingleFlight()


@dataclass(frozen=True)
class PopulationSnapshot:
    rows: list[Submission] = field(default_factory=list)
    captured_at: str | None = None
    complete: bool = True
    from_cache: bool = False


@dataclass(frozen=True)
class MetricSnapshot:
    metric: str
    values: list[float] = field(default_factory=list)
    rows: list[Submission] = field(default_factory=list)
    captured_at: str | None = None
    complete: bool = True
    from_cache: bool = False


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _rows_from_payload(payload: Any) -> list[Submission] | None:
    if not isinstance(payload, dict) or not isinstance(payload.get("rows"), list):
        return None
    return [Submission.from_row(row) for row in payload["rows"] if isinstance(row, dict)]


class SnapshotLoader:
    """
    Loads population and metric snapshots for the dashboard and ranking
    services.

    Parameters
    ----------
    cache:
        Shared snapshot cache.
    store:
        Submission store used on cache miss.
    stats_settings / cache_settings:
        Page size and TTLs.
    single_flight:
        Rebuild deduplicator; defaults to the process-wide instance.
    """

    def __init__(
        self,
        cache: SnapshotCache,
        store: SubmissionStore,
        *,
        stats_settings: StatsSettings,
        cache_settings: CacheSettings,
        single_flight: SingleFlight | None = None,
    ) -> None:
        self._cache = cache
        self._store = store
        self._stats_settings = stats_settings
        self._cache_settings = cache_settings
        self._single_flight = single_flight or _REBUILDS

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load_population(self) -> PopulationSnapshot:
        """Return the full population snapshot, rebuilding it on miss."""
        cached = self._cache.get(SUBMISSIONS_SNAPSHOT_KEY)
        rows = _rows_from_payload(cached)
        if rows is not None:
            return PopulationSnapshot(rows=rows, captured_at=cached.get("captured_at"), from_cache=True)

        return self._single_flight.do(SUBMISSIONS_SNAPSHOT_KEY, self._rebuild_population)

    def load_metric(self, metric: str) -> MetricSnapshot:
        """
        Return the snapshot for *metric*, rebuilding it on miss.

        Raises InvalidMetricError for an unknown metric name.
        """
        validate_metric(metric)
        key = metric_snapshot_key(metric)

        cached = self._cache.get(key)
        rows = _rows_from_payload(cached)
        if rows is not None and isinstance(cached.get("values"), list):
            return MetricSnapshot(
                metric=metric,
                values=[float(v) for v in cached["values"]],
                rows=rows,
                captured_at=cached.get("captured_at"),
                from_cache=True,
            )

        return self._single_flight.do(key, lambda: self._rebuild_metric(metric))

    def rebuild_all(self, metrics: tuple[str, ...]) -> dict[str, bool]:
        """
        Rebuild the population snapshot and every snapshot in *metrics*
        unconditionally, from a single store pull. Returns ``{key: complete}``.
        """
        for metric in metrics:
            validate_metric(metric)

        started = time.perf_counter()
        result = self._store.fetch_all(page_size=self._stats_settings.store_page_size)
        outcome = {SUBMISSIONS_SNAPSHOT_KEY: self._publish_population(result, started).complete}
        for metric in metrics:
            outcome[metric_snapshot_key(metric)] = self._publish_metric(metric, result, started).complete
        return outcome

    # ------------------------------------------------------------------
    # Rebuilds
    # ------------------------------------------------------------------

    def _rebuild_population(self) -> PopulationSnapshot:
        started = time.perf_counter()
        result = self._store.fetch_all(page_size=self._stats_settings.store_page_size)
        return self._publish_population(result, started)

    def _rebuild_metric(self, metric: str) -> MetricSnapshot:
        started = time.perf_counter()
        result = self._store.fetch_all(page_size=self._stats_settings.store_page_size)
        return self._publish_metric(metric, result, started)

    def _publish_population(self, result: FetchResult, started: float) -> PopulationSnapshot:
        captured_at = _now_iso()

        if result.complete:
            ttl = self._cache_settings.submissions_snapshot_ttl_seconds
            self._cache.set(
                SUBMISSIONS_SNAPSHOT_KEY,
                {
                    "rows": [row.to_dict() for row in result.rows],
                    "captured_at": captured_at,
                    "ttl_seconds": ttl,
                },
                ttl,
            )

        log_event(
            logger,
            logging.INFO,
            "population_snapshot_built",
            rows=len(result.rows),
            pages=result.pages,
            complete=result.complete,
            elapsed_ms=elapsed_ms(started),
        )
        return PopulationSnapshot(rows=result.rows, captured_at=captured_at, complete=result.complete)

    def _publish_metric(self, metric: str, result: FetchResult, started: float) -> MetricSnapshot:
        values = metric_values(result.rows, metric)
        captured_at = _now_iso()

        if result.complete:
            ttl = self._cache_settings.metric_snapshot_ttl_seconds
            self._cache.set(
                metric_snapshot_key(metric),
                {
                    "metric": metric,
                    "values": values,
                    "rows": [row.to_dict() for row in result.rows],
                    "captured_at": captured_at,
                    "ttl_seconds": ttl,
                },
                ttl,
            )

        log_event(
            logger,
            logging.INFO,
            "metric_snapshot_built",
            metric=metric,
            rows=len(result.rows),
            values=len(values),
            complete=result.complete,
            elapsed_ms=elapsed_ms(started),
        )
        return MetricSnapshot(
            metric=metric,
            values=values,
            rows=result.rows,
            captured_at=captured_at,
            complete=result.complete,
        )
