"""
stats/aggregation.py

Aggregation engine: grouped and global statistics over an in-memory list of
submissions.

All functions are pure. Absent values (``None``) are excluded from both the
denominator and the sorted arrays; they are never coerced to zero. Rounding to
:data:`PRECISION` decimal places happens once, when a result object is built,
never mid-computation.

Ratios
------
savings_rate  = savings_total / income_yearly * 100            (income > 0)
expense_rate  = monthly_expenses * 12 / income_yearly * 100    (income > 0)

A record with ``income_yearly == 0`` is excluded from both ratios but still
counts towards ``sample_size``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterable, Sequence

import numpy as np

from app.domain.submission import Submission
from stats.bucketing import AGE_BANDS, by_age_band, by_income_slab, by_occupation
from stats.percentile import median_of, percentile_of_rank

PRECISION = 2

KeyFn = Callable[[Submission], str | None]
ValueFn = Callable[[Submission], float | None]

LEADERBOARD_NAMES: tuple[str, ...] = (
    "income_by_occupation",
    "income_by_age",
    "savings_rate_by_income",
    "expense_rate_by_income",
)


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricSummary:
    """Distribution summary of one metric over the present values only."""

    count: int
    average: float
    median: float
    p25: float
    p75: float
    min: float
    max: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LeaderboardEntry:
    """
    One cohort bucket of a leaderboard.

    ``sample_size`` is the number of present values behind ``avg`` and
    ``median``; it is always at least 1.
    """

    label: str
    avg: float
    median: float
    sample_size: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _round(value: float) -> float:
    return round(float(value), PRECISION)


def _present(values: Iterable[float | None]) -> list[float]:
    return [v for v in values if v is not None]


def _mean(values: Sequence[float]) -> float:
    """Arithmetic mean; ``0.0`` for an empty list."""
    if not values:
        return 0.0
    return float(np.mean(values))


def savings_rate(submission: Submission) -> float | None:
    income = submission.income_yearly
    if income is None or income <= 0 or submission.savings_total is None:
        return None
    return submission.savings_total / income * 100


def expense_rate(submission: Submission) -> float | None:
    income = submission.income_yearly
    if income is None or income <= 0 or submission.monthly_expenses is None:
        return None
    return submission.monthly_expenses * 12 / income * 100


def yearly_expenses(submission: Submission) -> float | None:
    if submission.monthly_expenses is None:
        return None
    return submission.monthly_expenses * 12


def investment_total(submission: Submission) -> float | None:
    """
    Stocks + mutual funds + real estate + gold.

    A zero sum means no investments were recorded and is reported as absent.
    """
    total = sum(
        value or 0.0
        for value in (
            submission.stock_value_total,
            submission.mutual_fund_total,
            submission.real_estate_total_price,
            submission.gold_value_estimate,
        )
    )
    return total if total > 0 else None


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def summary_of(values: Iterable[float | None]) -> MetricSummary:
    """
    Summarise the present values of one metric.

    An empty input yields a summary of zeros with ``count == 0``.
    """
    ordered = sorted(_present(values))
    if not ordered:
        return MetricSummary(count=0, average=0.0, median=0.0, p25=0.0, p75=0.0, min=0.0, max=0.0)

    return MetricSummary(
        count=len(ordered),
        average=_round(_mean(ordered)),
        median=_round(median_of(ordered)),
        p25=_round(percentile_of_rank(ordered, 25)),
        p75=_round(percentile_of_rank(ordered, 75)),
        min=_round(ordered[0]),
        max=_round(ordered[-1]),
    )


def leaderboard_of(
    records: Iterable[Submission],
    key_fn: KeyFn,
    value_fn: ValueFn,
    limit: int | None = None,
) -> list[LeaderboardEntry]:
    """
    Group *records* by ``key_fn`` and rank groups by the average of ``value_fn``.

    Records whose key or value is absent are skipped. Groups are sorted by
    average, descending; equal averages keep first-seen group order. When
    *limit* is given, only the first *limit* entries are returned.
    """
    buckets: dict[str, list[float]] = {}
    for record in records:
        label = key_fn(record)
        value = value_fn(record)
        if not label or value is None:
            continue
        buckets.setdefault(label, []).append(value)

    # Rank on the unrounded mean; rounding applies to the emitted entry only.
    ranked = sorted(buckets.items(), key=lambda item: _mean(item[1]), reverse=True)
    entries = [
        LeaderboardEntry(
            label=label,
            avg=_round(_mean(values)),
            median=_round(median_of(sorted(values))),
            sample_size=len(values),
        )
        for label, values in ranked
    ]

    if limit is not None:
        entries = entries[: max(0, limit)]
    return entries


def leaderboards_of(records: Sequence[Submission], *, enabled: bool = True) -> dict[str, list[dict[str, Any]]]:
    """
    Build the four dashboard leaderboards.

    When *enabled* is false every leaderboard is an empty list; the caller
    uses this to withhold rankings computed on an under-powered sample.
    """
    if not enabled:
        return {name: [] for name in LEADERBOARD_NAMES}

    boards = {
        "income_by_occupation": leaderboard_of(records, by_occupation, lambda s: s.income_yearly),
        "income_by_age": leaderboard_of(records, by_age_band, lambda s: s.income_yearly),
        "savings_rate_by_income": leaderboard_of(records, by_income_slab, savings_rate),
        "expense_rate_by_income": leaderboard_of(records, by_income_slab, expense_rate),
    }
    return {name: [entry.to_dict() for entry in entries] for name, entries in boards.items()}


def global_averages_of(records: Sequence[Submission]) -> dict[str, Any]:
    """Population-wide averages over present values."""

    def avg(fn: ValueFn) -> float:
        return _round(_mean(_present(fn(r) for r in records)))

    return {
        "sample_size": len(records),
        "avg_income": avg(lambda s: s.income_yearly),
        "avg_expenses": avg(yearly_expenses),
        "avg_monthly_expenses": avg(lambda s: s.monthly_expenses),
        "avg_savings": avg(lambda s: s.savings_total),
        "avg_stock": avg(lambda s: s.stock_value_total),
        "avg_mf": avg(lambda s: s.mutual_fund_total),
        "avg_re": avg(lambda s: s.real_estate_total_price),
        "avg_gold": avg(lambda s: s.gold_value_estimate),
        "avg_networth": avg(lambda s: s.net_worth),
        "avg_investment_total": avg(investment_total),
    }


def cohort_summary_of(records: Sequence[Submission]) -> dict[str, Any]:
    """
    Cohort headline numbers: medians of income and of the two income ratios,
    merged with :func:`global_averages_of`.
    """

    def med(fn: ValueFn) -> float:
        return _round(median_of(sorted(_present(fn(r) for r in records))))

    summary = {
        "sample_size": len(records),
        "median_income": med(lambda s: s.income_yearly),
        "median_savings_rate": med(savings_rate),
        "median_expense_rate": med(expense_rate),
    }
    return {**summary, **global_averages_of(records)}


def monthly_emi_of(records: Sequence[Submission]) -> dict[str, Any]:
    """Average and median of ``additional_metrics["monthly_emi"]`` where present."""
    values = sorted(_present(r.extra_metric("monthly_emi") for r in records))
    return {
        "average": _round(_mean(values)),
        "median": _round(median_of(values)),
        "sample_size": len(values),
    }


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def facets_of(records: Sequence[Submission]) -> dict[str, list[str]]:
    """Distinct category values for client-side filter controls."""
    occupations = list(dict.fromkeys(r.occupation for r in records if r.occupation))
    cities = list(dict.fromkeys(r.city for r in records if r.city))
    yoe_values = sorted({r.yoe for r in records if r.yoe is not None})
    return {
        "occupations": occupations,
        "cities": cities,
        "age_ranges": list(AGE_BANDS),
        "yoe_ranges": [_format_number(v) for v in yoe_values],
    }


def warnings_for(sample_size: int, *, min_cohort_size: int, leaderboard_min: int) -> dict[str, bool]:
    return {
        "cohort_small": sample_size < min_cohort_size,
        "leaderboard_small": sample_size < leaderboard_min,
    }
