"""
app/domain/filters.py

Cohort filters for dashboards and cohort slices for rankings.

Dashboard filters are array-valued per dimension: values within one
dimension are unioned, dimensions are intersected. The ``age`` dimension
accepts either exact ages ("31") or canonical band labels ("30–34").
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Callable, Iterable

from app.domain.submission import Submission
from stats.bucketing import age_band, income_slab, normalize_age_band

SlicePredicate = Callable[[Submission], bool]


class InvalidFilterError(ValueError):
    """
    Raised when a filter or slice value cannot be interpreted.
    """


def _parse_int(dimension: str, raw: str) -> int:
    try:
        number = float(raw.strip())
    except ValueError as exc:
        raise InvalidFilterError(f"{dimension} filter value {raw!r} is not a number.") from exc
    if not number.is_integer():
        raise InvalidFilterError(f"{dimension} filter value {raw!r} must be a whole number.")
    return int(number)


def _parse_number(dimension: str, raw: str) -> float:
    try:
        number = float(raw.strip())
    except ValueError as exc:
        raise InvalidFilterError(f"{dimension} filter value {raw!r} is not a number.") from exc
    if not math.isfinite(number):
        raise InvalidFilterError(f"{dimension} filter value {raw!r} is not a finite number.")
    return number


def _canonical_number(value: float) -> int | float:
    """Whole values as ``int`` so 3 and 3.0 share one fingerprint."""
    return int(value) if value.is_integer() else value


def _clean(values: Iterable[str] | None) -> tuple[str, ...]:
    if not values:
        return ()
    cleaned = {v.strip() for v in values if v is not None and v.strip()}
    return tuple(sorted(cleaned))


@dataclass(frozen=True)
class CohortFilters:
    """
    Canonical (sorted, de-duplicated) dashboard filter set.
    """

    city: tuple[str, ...] = ()
    occupation: tuple[str, ...] = ()
    ages: tuple[int, ...] = ()
    age_bands: tuple[str, ...] = ()
    yoe: tuple[float, ...] = ()

    @classmethod
    def parse(
        cls,
        *,
        city: Iterable[str] | None = None,
        occupation: Iterable[str] | None = None,
        age: Iterable[str] | None = None,
        yoe: Iterable[str] | None = None,
    ) -> "CohortFilters":
        """
        Build filters from raw query values.

        Raises InvalidFilterError for an age that is neither a whole number
        nor a known band, or for a years-of-experience value that is not a
        finite number.
        """
        ages: set[int] = set()
        bands: set[str] = set()
        for raw in _clean(age):
            band = normalize_age_band(raw)
            if band is not None:
                bands.add(band)
                continue
            try:
                ages.add(_parse_int("age", raw))
            except InvalidFilterError as exc:
                raise InvalidFilterError(
                    f"age filter value {raw!r} is neither a whole number nor a known age band."
                ) from exc

        return cls(
            city=_clean(city),
            occupation=_clean(occupation),
            ages=tuple(sorted(ages)),
            age_bands=tuple(sorted(bands)),
            yoe=tuple(sorted({_parse_number("yoe", raw) for raw in _clean(yoe)})),
        )

    def is_empty(self) -> bool:
        return not (self.city or self.occupation or self.ages or self.age_bands or self.yoe)

    def matches(self, submission: Submission) -> bool:
        if self.city and (submission.city or "") not in self.city:
            return False
        if self.occupation and (submission.occupation or "") not in self.occupation:
            return False
        if self.ages or self.age_bands:
            if submission.age is None:
                return False
            exact = submission.age.is_integer() and int(submission.age) in self.ages
            banded = age_band(submission.age) in self.age_bands
            if not (exact or banded):
                return False
        if self.yoe:
            if submission.yoe is None or submission.yoe not in self.yoe:
                return False
        return True

    def apply(self, submissions: Iterable[Submission]) -> list[Submission]:
        return [s for s in submissions if self.matches(s)]

    def to_dict(self) -> dict[str, list]:
        """Non-empty dimensions only, values already sorted."""
        dimensions = {
            "age": [str(a) for a in self.ages] + list(self.age_bands),
            "city": list(self.city),
            "occupation": list(self.occupation),
            "yoe": [_canonical_number(y) for y in self.yoe],
        }
        return {name: values for name, values in dimensions.items() if values}

    def fingerprint(self) -> str:
        """
        Canonical serialization used as the dashboard cache key suffix.

        The same filter set yields the same fingerprint regardless of the order
        in which dimensions or values were supplied.
        """
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class RankingSlices:
    """
    Optional single-value cohort selectors for a ranking request.
    """

    city: str | None = None
    occupation: str | None = None
    age_band: str | None = None
    yoe: float | None = None
    region: str | None = None
    income_bracket: str | None = None

    @classmethod
    def parse(
        cls,
        *,
        city: str | None = None,
        occupation: str | None = None,
        age: str | None = None,
        yoe: str | None = None,
        region: str | None = None,
        income_bracket: str | None = None,
    ) -> "RankingSlices":
        band: str | None = None
        if age and age.strip():
            band = normalize_age_band(age)
            if band is None:
                raise InvalidFilterError(f"Unknown age band {age!r}.")

        return cls(
            city=(city or "").strip() or None,
            occupation=(occupation or "").strip() or None,
            age_band=band,
            yoe=_parse_number("yoe", yoe) if yoe and yoe.strip() else None,
            region=(region or "").strip() or None,
            income_bracket=(income_bracket or "").strip() or None,
        )

    def predicates(self) -> dict[str, SlicePredicate]:
        """Predicate per requested slice, keyed by slice name."""
        selected: dict[str, SlicePredicate] = {}
        if self.city is not None:
            selected["city"] = lambda s, v=self.city: s.city == v
        if self.occupation is not None:
            selected["occupation"] = lambda s, v=self.occupation: s.occupation == v
        if self.age_band is not None:
            selected["age"] = lambda s, v=self.age_band: age_band(s.age) == v
        if self.yoe is not None:
            selected["yoe"] = lambda s, v=self.yoe: s.yoe is not None and s.yoe == v
        if self.region is not None:
            selected["region"] = lambda s, v=self.region: s.region == v
        if self.income_bracket is not None:
            selected["income_bracket"] = lambda s, v=self.income_bracket: _bracket_of(s) == v
        return selected


def _bracket_of(submission: Submission) -> str | None:
    """Stored bracket label, falling back to the computed income slab."""
    return submission.income_bracket or income_slab(submission.income_yearly)


SLICE_NAMES: tuple[str, ...] = ("city", "occupation", "age", "yoe", "region", "income_bracket")
