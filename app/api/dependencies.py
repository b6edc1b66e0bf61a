"""
app/api/dependencies.py

Shared FastAPI dependencies wiring the stats services per request.

The snapshot cache is process-wide. The submission store wraps the
request-scoped database session; a connection is only checked out when a
query actually runs (cache hits never touch the database).
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from app.cache.snapshot_cache import SnapshotCache, get_snapshot_cache
from app.config import get_cache_settings, get_stats_settings
from app.services.dashboard_service import DashboardService
from app.services.invalidation_service import InvalidationSignal
from app.services.ranking_service import RankingService
from app.services.result_service import ResultService
from app.services.snapshot_service import SnapshotLoader
from db.repositories.base import SubmissionStore
from db.repositories.submission_repository import SubmissionRepository
from db.session import get_db


def get_cache() -> SnapshotCache:
    return get_snapshot_cache()


def get_store(db: Session = Depends(get_db)) -> SubmissionStore:
    return SubmissionRepository(db)


def get_snapshot_loader(
    cache: SnapshotCache = Depends(get_cache),
    store: SubmissionStore = Depends(get_store),
) -> SnapshotLoader:
    return SnapshotLoader(
        cache,
        store,
        stats_settings=get_stats_settings(),
        cache_settings=get_cache_settings(),
    )


def get_dashboard_service(
    cache: SnapshotCache = Depends(get_cache),
    store: SubmissionStore = Depends(get_store),
    loader: SnapshotLoader = Depends(get_snapshot_loader),
) -> DashboardService:
    return DashboardService(
        cache,
        store,
        loader,
        stats_settings=get_stats_settings(),
        cache_settings=get_cache_settings(),
    )


def get_ranking_service(loader: SnapshotLoader = Depends(get_snapshot_loader)) -> RankingService:
    return RankingService(loader)


def get_result_service(store: SubmissionStore = Depends(get_store)) -> ResultService:
    return ResultService(store)


def get_invalidation_signal(cache: SnapshotCache = Depends(get_cache)) -> InvalidationSignal:
    return InvalidationSignal(cache)
