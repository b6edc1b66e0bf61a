"""
app/domain/submission.py

Read-side domain model for one anonymized financial submission.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

NUMERIC_FIELDS: tuple[str, ...] = (
    "age",
    "yoe",
    "income_yearly",
    "monthly_expenses",
    "savings_total",
    "liabilities_total",
    "net_worth",
    "stock_value_total",
    "mutual_fund_total",
    "real_estate_total_price",
    "gold_value_estimate",
)

CATEGORICAL_FIELDS: tuple[str, ...] = (
    "city",
    "occupation",
    "region",
    "income_bracket",
)

SUBMISSION_COLUMNS: tuple[str, ...] = (
    "id",
    *CATEGORICAL_FIELDS,
    *NUMERIC_FIELDS,
    "additional_metrics",
)
"""Fixed projection pulled from the store for every snapshot."""


def to_finite_float(value: Any) -> float | None:
    """
    Coerce a raw column value to a finite float, or ``None`` when absent.

    Booleans, empty strings, NaN, infinities and unparsable values are all
    treated as absent. Zero stays zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _to_label(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Submission:
    """
    One immutable submission record.

    Every numeric field is either a finite float or ``None`` (absent).
    ``additional_metrics`` is an open mapping of extra numeric values such as
    ``monthly_emi``; it never holds non-numeric entries.
    """

    id: str | None = None

    age: float | None = None
    yoe: float | None = None

    city: str | None = None
    occupation: str | None = None
    region: str | None = None
    income_bracket: str | None = None

    income_yearly: float | None = None
    monthly_expenses: float | None = None
    savings_total: float | None = None
    liabilities_total: float | None = None
    net_worth: float | None = None
    stock_value_total: float | None = None
    mutual_fund_total: float | None = None
    real_estate_total_price: float | None = None
    gold_value_estimate: float | None = None

    additional_metrics: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Submission":
        """Build a submission from a store row or a cached snapshot row."""
        raw_extra = row.get("additional_metrics") or {}
        extra: dict[str, float] = {}
        if isinstance(raw_extra, Mapping):
            for key, raw_value in raw_extra.items():
                number = to_finite_float(raw_value)
                if number is not None:
                    extra[str(key)] = number

        raw_id = row.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            **{name: _to_label(row.get(name)) for name in CATEGORICAL_FIELDS},
            **{name: to_finite_float(row.get(name)) for name in NUMERIC_FIELDS},
            additional_metrics=extra,
        )

    def extra_metric(self, key: str) -> float | None:
        """Absent-safe lookup into ``additional_metrics``."""
        return self.additional_metrics.get(key)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation used inside cached snapshots."""
        return asdict(self)
