"""
stats/bucketing.py

Cohort grouping functions shared by leaderboards, facets, dashboard filters
and ranking slices.

Age bands
---------
One canonical banding is used everywhere age is bucketed::

    Under 25 | 25–29 | 30–34 | 35–39 | 40–44 | 45–49 | 50+

Labels use an en dash. Inputs written with a plain hyphen ("25-29") are
accepted by :func:`normalize_age_band`, as is "<25" for the youngest band.

Income slabs
------------
Fixed-width slabs of ₹500,000 (5 lakh), labelled as a closed range in lakhs,
e.g. an income of 1,240,000 falls in ``₹10L–₹15L``.
"""

from __future__ import annotations

from typing import Final

from app.domain.submission import Submission

AGE_BANDS: Final[tuple[str, ...]] = (
    "Under 25",
    "25–29",
    "30–34",
    "35–39",
    "40–44",
    "45–49",
    "50+",
)

# (label, inclusive lower bound, exclusive upper bound)
_AGE_BAND_BOUNDS: Final[tuple[tuple[str, float | None, float | None], ...]] = (
    ("Under 25", None, 25),
    ("25–29", 25, 30),
    ("30–34", 30, 35),
    ("35–39", 35, 40),
    ("40–44", 40, 45),
    ("45–49", 45, 50),
    ("50+", 50, None),
)

# Alternate spellings of the youngest band.
_AGE_BAND_ALIASES: Final[dict[str, str]] = {
    "<25": "Under 25",
    "under25": "Under 25",
    "0–24": "Under 25",
}

INCOME_SLAB_WIDTH: Final[int] = 500_000
_LAKH: Final[int] = 100_000


def age_band(age: float | None) -> str | None:
    """Canonical age band label for *age*, or ``None`` when age is absent."""
    if age is None:
        return None
    for label, lower, upper in _AGE_BAND_BOUNDS:
        if (lower is None or age >= lower) and (upper is None or age < upper):
            return label
    return None


def normalize_age_band(label: str) -> str | None:
    """
    Map a user-supplied band label onto its canonical spelling.

    Returns ``None`` when *label* is not a known band.
    """
    cleaned = label.strip().replace("-", "–").replace("—", "–")
    cleaned = cleaned.replace(" – ", "–")
    alias = _AGE_BAND_ALIASES.get(cleaned.replace(" ", "").lower())
    if alias is not None:
        return alias
    for band in AGE_BANDS:
        if cleaned.lower() == band.lower():
            return band
    return None


def age_band_bounds(label: str) -> tuple[float | None, float | None]:
    """``(lower inclusive, upper exclusive)`` for a canonical band label."""
    for band, lower, upper in _AGE_BAND_BOUNDS:
        if band == label:
            return lower, upper
    raise KeyError(label)


def income_slab(income: float | None) -> str | None:
    """Income slab label, or ``None`` when income is absent or not positive."""
    if income is None or income <= 0:
        return None
    lower = int(income // INCOME_SLAB_WIDTH) * (INCOME_SLAB_WIDTH // _LAKH)
    upper = lower + INCOME_SLAB_WIDTH // _LAKH
    return f"₹{lower}L–₹{upper}L"


def by_occupation(submission: Submission) -> str | None:
    return submission.occupation


def by_age_band(submission: Submission) -> str | None:
    return age_band(submission.age)


def by_income_slab(submission: Submission) -> str | None:
    return income_slab(submission.income_yearly)
