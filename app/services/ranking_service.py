"""
app/services/ranking_service.py

Ranking service: where does value V stand for metric M?

The global standing is computed against the cached metric snapshot. Each
requested cohort slice (city, occupation, age band, years of experience,
region, income bracket) filters the snapshot's backing rows, extracts the
metric, sorts, and calls the same :func:`stats.percentile.standing_of` used
for the global figure.

A slice with no matching values yields ``None`` ("rank unavailable"), which
is distinct from a 0th-percentile standing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from app.domain.filters import SLICE_NAMES, RankingSlices
from app.services.snapshot_service import MetricSnapshot, SnapshotLoader
from stats.metrics import ALLOWED_METRICS, InvalidMetricError, metric_values, validate_metric
from stats.percentile import standing_of

logger = logging.getLogger(__name__)

PRECISION = 2


@dataclass(frozen=True)
class RankingResult:
    """
    Standing of one value for one metric.

    ``slice_percentiles`` always carries every slice name; slices that were
    not requested or had no peers map to ``None``.
    """

    metric: str
    value: float
    percentile: float
    sample_size: int
    slice_percentiles: dict[str, float | None] = field(default_factory=dict)
    slice_sizes: dict[str, int] = field(default_factory=dict)
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "metric": self.metric,
            "value": self.value,
            "percentile": self.percentile,
            "sample_size": self.sample_size,
            "degraded": self.degraded,
        }
        for name in SLICE_NAMES:
            body[f"{name}_percentile"] = self.slice_percentiles.get(name)
        return body


class RankingService:
    """
    Answers percentile-standing queries against cached metric snapshots.
    """

    def __init__(self, loader: SnapshotLoader) -> None:
        self._loader = loader

    def rank(
        self,
        metric: str,
        value: float,
        slices: RankingSlices | None = None,
    ) -> RankingResult:
        """
        Rank *value* for *metric*, globally and within any requested slices.

        Raises InvalidMetricError for an unknown metric.
        """
        validate_metric(metric)
        snapshot = self._loader.load_metric(metric)
        return self._rank_against(snapshot, value, slices or RankingSlices())

    def rank_many(
        self,
        values: Mapping[str, Any],
        slices: RankingSlices | None = None,
    ) -> dict[str, RankingResult]:
        """
        Rank several metrics at once.

        Unknown metric names and non-finite values are skipped. Raises
        InvalidMetricError if nothing valid remains.
        """
        accepted: dict[str, float] = {}
        for metric, raw in values.items():
            if metric not in ALLOWED_METRICS:
                logger.debug("rank_many skipping unknown metric=%r", metric)
                continue
            try:
                number = float(raw)
            except (TypeError, ValueError):
                continue
            if isinstance(raw, bool) or not math.isfinite(number):
                continue
            accepted[metric] = number

        if not accepted:
            raise InvalidMetricError(
                f"No valid metrics provided. Allowed values: {list(ALLOWED_METRICS)}."
            )

        chosen = slices or RankingSlices()
        return {
            metric: self._rank_against(self._loader.load_metric(metric), number, chosen)
            for metric, number in accepted.items()
        }

    def _rank_against(
        self,
        snapshot: MetricSnapshot,
        value: float,
        slices: RankingSlices,
    ) -> RankingResult:
        slice_percentiles: dict[str, float | None] = {name: None for name in SLICE_NAMES}
        slice_sizes: dict[str, int] = {}

        for name, predicate in slices.predicates().items():
            peers = metric_values([row for row in snapshot.rows if predicate(row)], snapshot.metric)
            slice_sizes[name] = len(peers)
            if peers:
                slice_percentiles[name] = round(standing_of(peers, value), PRECISION)

        return RankingResult(
            metric=snapshot.metric,
            value=value,
            percentile=round(standing_of(snapshot.values, value), PRECISION),
            sample_size=len(snapshot.values),
            slice_percentiles=slice_percentiles,
            slice_sizes=slice_sizes,
            degraded=not snapshot.complete,
        )
