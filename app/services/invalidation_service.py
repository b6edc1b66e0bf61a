"""
app/services/invalidation_service.py

Cache invalidation signal, raised after a new submission is accepted.

Evicts, in order:

    1. every metric snapshot         snapshot:<metric>
    2. the population snapshot       submissions_snapshot:all
    3. every dashboard payload       dashboard:*   (prefix scan)

Eviction is idempotent: deleting keys that are already gone is a no-op.
:meth:`InvalidationSignal.fire` schedules the eviction on a background worker
and returns immediately; a dropped or failed signal only means stale data is
served until the TTL elapses.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor

from app.cache.keys import DASHBOARD_PREFIX, SUBMISSIONS_SNAPSHOT_KEY, metric_snapshot_key
from app.cache.snapshot_cache import SnapshotCache
from app.logging_utils import elapsed_ms, log_event
from stats.metrics import ALLOWED_METRICS

logger = logging.getLogger(__name__)

_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cache-invalidate")


class InvalidationSignal:
    """
    Evicts every snapshot family from the shared cache.

    Parameters
    ----------
    cache:
        Shared snapshot cache.
    executor:
        Worker used by :meth:`fire`; defaults to a process-wide single thread.
    """

    def __init__(self, cache: SnapshotCache, executor: ThreadPoolExecutor | None = None) -> None:
        self._cache = cache
        self._executor = executor or _EXECUTOR

    def evict_all(self) -> dict[str, int]:
        """
        Synchronously delete all snapshot keys.

        Returns deleted-key counts per family: ``metrics``,
        ``submissions`` and ``dashboards``.
        """
        started = time.perf_counter()
        counts = {
            "metrics": sum(self._cache.invalidate(metric_snapshot_key(m)) for m in ALLOWED_METRICS),
            "submissions": self._cache.invalidate(SUBMISSIONS_SNAPSHOT_KEY),
            "dashboards": self._cache.invalidate_prefix(DASHBOARD_PREFIX),
        }
        log_event(logger, logging.INFO, "cache_evicted", elapsed_ms=elapsed_ms(started), **counts)
        return counts

    def fire(self) -> Future:
        """Schedule :meth:`evict_all` in the background and return at once."""
        future = self._executor.submit(self.evict_all)
        future.add_done_callback(_log_failure)
        return future


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        log_event(logger, logging.ERROR, "cache_evict_failed", error=str(exc))
