"""
stats/metrics.py

Ranking metric registry.

Each metric is a pure function of a single :class:`Submission` returning a
finite float or ``None`` when the submission does not carry the value. No
metric may look at any record other than its own.

Metric names
------------
income, savings, expenses, net_worth, investment_value, stock_value_total,
mutual_fund_total, real_estate_total_price, gold_value_estimate

``investment_value`` is derived: savings + stocks + mutual funds + real estate
+ gold, where absent terms count as zero. It is reported only when the sum is
positive; a zero sum means nothing was recorded.
"""

from __future__ import annotations

from typing import Callable, Final

from app.domain.submission import Submission

MetricFn = Callable[[Submission], float | None]


class InvalidMetricError(ValueError):
    """
    Raised when a metric name is not part of the ranking metric registry.

    Valid values are the keys of :data:`_METRIC_REGISTRY`.
    """


METRIC_INCOME: Final[str] = "income"
METRIC_SAVINGS: Final[str] = "savings"
METRIC_EXPENSES: Final[str] = "expenses"
METRIC_NET_WORTH: Final[str] = "net_worth"
METRIC_INVESTMENT_VALUE: Final[str] = "investment_value"
METRIC_STOCK_VALUE_TOTAL: Final[str] = "stock_value_total"
METRIC_MUTUAL_FUND_TOTAL: Final[str] = "mutual_fund_total"
METRIC_REAL_ESTATE_TOTAL_PRICE: Final[str] = "real_estate_total_price"
METRIC_GOLD_VALUE_ESTIMATE: Final[str] = "gold_value_estimate"


def investment_value(submission: Submission) -> float | None:
    """Sum of savings and the four investable assets, absent unless positive."""
    total = sum(
        value or 0.0
        for value in (
            submission.savings_total,
            submission.stock_value_total,
            submission.mutual_fund_total,
            submission.real_estate_total_price,
            submission.gold_value_estimate,
        )
    )
    return total if total > 0 else None


_METRIC_REGISTRY: dict[str, MetricFn] = {
    METRIC_INCOME: lambda s: s.income_yearly,
    METRIC_SAVINGS: lambda s: s.savings_total,
    METRIC_EXPENSES: lambda s: s.monthly_expenses,
    METRIC_NET_WORTH: lambda s: s.net_worth,
    METRIC_INVESTMENT_VALUE: investment_value,
    METRIC_STOCK_VALUE_TOTAL: lambda s: s.stock_value_total,
    METRIC_MUTUAL_FUND_TOTAL: lambda s: s.mutual_fund_total,
    METRIC_REAL_ESTATE_TOTAL_PRICE: lambda s: s.real_estate_total_price,
    METRIC_GOLD_VALUE_ESTIMATE: lambda s: s.gold_value_estimate,
}

ALLOWED_METRICS: tuple[str, ...] = tuple(_METRIC_REGISTRY)


def validate_metric(metric: str) -> str:
    """Return *metric* unchanged, or raise :class:`InvalidMetricError`."""
    if metric not in _METRIC_REGISTRY:
        raise InvalidMetricError(
            f"Unsupported metric {metric!r}. Allowed values: {list(ALLOWED_METRICS)}."
        )
    return metric


def metric_value(submission: Submission, metric: str) -> float | None:
    """Extract *metric* from *submission*."""
    return _METRIC_REGISTRY[validate_metric(metric)](submission)


def metric_values(submissions: list[Submission], metric: str) -> list[float]:
    """Present values of *metric* across *submissions*, sorted ascending."""
    extractor = _METRIC_REGISTRY[validate_metric(metric)]
    values = [extractor(s) for s in submissions]
    return sorted(v for v in values if v is not None)
