"""
Schemas for the benchmarking stats endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class DashboardResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    cached: bool = False
    degraded: bool = False


class RankFields(BaseModel):
    metric: str
    value: float
    percentile: float
    city_percentile: float | None = None
    occupation_percentile: float | None = None
    age_percentile: float | None = None
    yoe_percentile: float | None = None
    region_percentile: float | None = None
    income_bracket_percentile: float | None = None
    sample_size: int
    degraded: bool = False


class RankResponse(RankFields):
    success: bool = True


class BatchRankRequest(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)
    city: str | None = None
    occupation: str | None = None
    age: str | None = None
    yoe: str | None = None
    region: str | None = None
    income_bracket: str | None = None


class BatchRankResponse(BaseModel):
    success: bool = True
    data: dict[str, RankFields] = Field(default_factory=dict)


class InvalidateResponse(BaseModel):
    success: bool = True
    status: str
    deleted: dict[str, int] | None = None


class SubmissionMetricsResponse(BaseModel):
    success: bool = True
    id: str
    metrics: dict[str, float | None]
