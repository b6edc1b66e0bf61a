"""
app/services package marker.
"""

from app.services.dashboard_service import DashboardResult, DashboardService
from app.services.invalidation_service import InvalidationSignal
from app.services.ranking_service import RankingResult, RankingService
from app.services.result_service import ResultService
from app.services.snapshot_service import MetricSnapshot, PopulationSnapshot, SnapshotLoader

__all__ = [
    "DashboardResult",
    "DashboardService",
    "InvalidationSignal",
    "MetricSnapshot",
    "PopulationSnapshot",
    "RankingResult",
    "RankingService",
    "ResultService",
    "SnapshotLoader",
]
