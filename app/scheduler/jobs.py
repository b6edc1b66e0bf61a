"""
app/scheduler/jobs.py

APScheduler-based snapshot warm-up.

Job
---
  warm_snapshots: every ``SNAPSHOT_WARM_INTERVAL_SECONDS`` seconds

Rebuilds the population snapshot and every metric snapshot from one store
pull, so user requests rarely hit a cold cache after a TTL expiry or an
invalidation. Dashboard payloads are not pre-built; they are cheap to derive
once the population snapshot is warm.

The job is not registered when the interval is 0 (the default).

Lifecycle
---------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.cache.snapshot_cache import SnapshotCache, get_snapshot_cache
from app.config import SchedulerSettings, get_cache_settings, get_scheduler_settings, get_stats_settings
from app.services.snapshot_service import SnapshotLoader
from db.repositories.base import SubmissionStore
from db.repositories.submission_repository import SubmissionRepository
from db.session import SessionLocal
from stats.metrics import ALLOWED_METRICS

logger = logging.getLogger(__name__)

WARM_JOB_ID = "warm_snapshots"


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Yield a fresh session and ensure it is closed on exit."""
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Job: snapshot warm-up
# ---------------------------------------------------------------------------


def warm_snapshots(
    cache: SnapshotCache | None = None,
    store: SubmissionStore | None = None,
) -> dict[str, bool]:
    """
    Rebuild every snapshot. Returns ``{cache_key: complete}``.

    *cache* and *store* default to the process-wide cache and a fresh
    database-backed repository.
    """
    logger.info("Scheduler: warm_snapshots starting")
    snapshot_cache = cache or get_snapshot_cache()

    def _run(active_store: SubmissionStore) -> dict[str, bool]:
        loader = SnapshotLoader(
            snapshot_cache,
            active_store,
            stats_settings=get_stats_settings(),
            cache_settings=get_cache_settings(),
        )
        return loader.rebuild_all(ALLOWED_METRICS)

    if store is not None:
        outcome = _run(store)
    else:
        with _session_scope() as db:
            outcome = _run(SubmissionRepository(db))

    incomplete = sorted(key for key, complete in outcome.items() if not complete)
    if incomplete:
        logger.warning("Scheduler: warm_snapshots partial, not cached: %s", ", ".join(incomplete))
    logger.info("Scheduler: warm_snapshots complete keys=%d", len(outcome))
    return outcome


def _run_warm_snapshots() -> None:
    try:
        warm_snapshots()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: warm_snapshots failed: %s", exc)


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(settings: SchedulerSettings | None = None) -> BackgroundScheduler:
    """
    Build and register the periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    settings = settings or get_scheduler_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    interval = settings.snapshot_warm_interval_seconds
    if interval > 0:
        scheduler.add_job(
            _run_warm_snapshots,
            trigger="interval",
            seconds=interval,
            id=WARM_JOB_ID,
            name="Snapshot warm-up",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=max(1, interval // 2),
        )
    else:
        logger.info("Scheduler: warm_snapshots disabled (SNAPSHOT_WARM_INTERVAL_SECONDS=0)")

    return scheduler
