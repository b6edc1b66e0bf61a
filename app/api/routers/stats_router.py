"""
app/api/routers/stats_router.py

Benchmarking stats endpoints.

    GET  /stats/dashboard        composite dashboard for a filter set
    GET  /stats/rank             percentile standing of one value
    POST /stats/rank/batch       percentile standings for several metrics
    POST /stats/invalidate       evict every cached snapshot
    GET  /results/{id}           ranking metrics of one stored submission

Input errors (unknown metric, malformed filter) map to HTTP 400. Cache and
store failures never surface here except on the by-id lookup, which has no
cached fallback and answers 503.
"""

from __future__ import annotations

import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from app.api.dependencies import (
    get_dashboard_service,
    get_invalidation_signal,
    get_ranking_service,
    get_result_service,
)
from app.domain.filters import CohortFilters, InvalidFilterError, RankingSlices
from app.schemas.stats import (
    BatchRankRequest,
    BatchRankResponse,
    DashboardResponse,
    InvalidateResponse,
    RankFields,
    RankResponse,
    SubmissionMetricsResponse,
)
from app.services.dashboard_service import DashboardService
from app.services.invalidation_service import InvalidationSignal
from app.services.ranking_service import RankingService
from app.services.result_service import ResultService
from db.repositories.errors import StoreUnavailableError
from stats.metrics import InvalidMetricError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stats"])

_FILTER_DIMENSIONS = ("city", "occupation", "age", "yoe")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _multi_value(request: Request, name: str) -> list[str]:
    """Repeated ``name`` and ``name[]`` query values, in request order."""
    params = request.query_params
    return params.getlist(name) + params.getlist(f"{name}[]")


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/stats/dashboard", response_model=DashboardResponse)
def get_dashboard(
    request: Request,
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    """
    Dashboard payload for the filters in the query string.

    Each of ``city``, ``occupation``, ``age`` and ``yoe`` may be repeated;
    ``age`` takes exact ages or band labels such as ``30–34``.
    """
    try:
        filters = CohortFilters.parse(**{name: _multi_value(request, name) for name in _FILTER_DIMENSIONS})
    except InvalidFilterError as exc:
        raise _bad_request(exc) from exc

    result = service.build(filters)
    return DashboardResponse(data=result.payload, cached=result.cached, degraded=result.degraded)


@router.get("/stats/rank", response_model=RankResponse)
def get_rank(
    metric: str = Query(...),
    value: float = Query(...),
    city: str | None = Query(None),
    occupation: str | None = Query(None),
    age: str | None = Query(None),
    yoe: str | None = Query(None),
    region: str | None = Query(None),
    income_bracket: str | None = Query(None),
    service: RankingService = Depends(get_ranking_service),
) -> RankResponse:
    """
    Percentile standing of ``value`` for ``metric``, globally and within the
    optional cohort slices. A slice with no peers reports ``null``.
    """
    if not math.isfinite(value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="value must be a finite number.")

    try:
        slices = RankingSlices.parse(
            city=city,
            occupation=occupation,
            age=age,
            yoe=yoe,
            region=region,
            income_bracket=income_bracket,
        )
        result = service.rank(metric, value, slices)
    except (InvalidMetricError, InvalidFilterError) as exc:
        raise _bad_request(exc) from exc

    return RankResponse(**result.to_dict())


@router.post("/stats/rank/batch", response_model=BatchRankResponse)
def post_rank_batch(
    body: BatchRankRequest,
    service: RankingService = Depends(get_ranking_service),
) -> BatchRankResponse:
    """
    Standings for several metrics in one call. Unknown metrics and
    non-numeric values are skipped; 400 if none remain.
    """
    try:
        slices = RankingSlices.parse(
            city=body.city,
            occupation=body.occupation,
            age=body.age,
            yoe=body.yoe,
            region=body.region,
            income_bracket=body.income_bracket,
        )
        results = service.rank_many(body.values, slices)
    except (InvalidMetricError, InvalidFilterError) as exc:
        raise _bad_request(exc) from exc

    return BatchRankResponse(
        data={metric: RankFields(**result.to_dict()) for metric, result in results.items()}
    )


@router.post(
    "/stats/invalidate",
    response_model=InvalidateResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def post_invalidate(
    response: Response,
    wait: bool = Query(False),
    signal: InvalidationSignal = Depends(get_invalidation_signal),
) -> InvalidateResponse:
    """
    Evict every cached snapshot and dashboard.

    By default the eviction is scheduled and 202 is returned at once. With
    ``wait=true`` it runs inline and the deleted-key counts are returned.
    """
    if wait:
        deleted = signal.evict_all()
        response.status_code = status.HTTP_200_OK
        return InvalidateResponse(status="evicted", deleted=deleted)

    signal.fire()
    return InvalidateResponse(status="scheduled")


@router.get("/results/{submission_id}", response_model=SubmissionMetricsResponse)
def get_submission_metrics(
    submission_id: str,
    service: ResultService = Depends(get_result_service),
) -> SubmissionMetricsResponse:
    try:
        metrics = service.metrics_for(submission_id)
    except StoreUnavailableError as exc:
        logger.error("result lookup failed id=%s: %s", submission_id, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Submission store unavailable.",
        ) from exc

    if metrics is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Submission {submission_id} not found.",
        )
    return SubmissionMetricsResponse(id=submission_id, metrics=metrics)
