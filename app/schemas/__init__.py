"""
app/schemas package marker.
"""

from app.schemas.stats import (
    BatchRankRequest,
    BatchRankResponse,
    DashboardResponse,
    InvalidateResponse,
    RankFields,
    RankResponse,
    SubmissionMetricsResponse,
)

__all__ = [
    "BatchRankRequest",
    "BatchRankResponse",
    "DashboardResponse",
    "InvalidateResponse",
    "RankFields",
    "RankResponse",
    "SubmissionMetricsResponse",
]
