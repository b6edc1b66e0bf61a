"""
stats/percentile.py

Percentile engine.

Two pure functions over an ascending-sorted population:

    standing_of(sorted_values, target)   – where *target* stands, in [0, 100]
    percentile_of_rank(sorted_values, p) – the value found at percentile *p*

Standing policy
---------------
Count-based: the standing of *target* is the share of the population that is
strictly below it::

    standing = index / n * 100      index = #{x in population : x < target}

Equal values therefore share the standing of their first occurrence. A target
at or below the minimum stands at 0, at or above the maximum at 100. Every
global and cohort-sliced ranking goes through :func:`standing_of`.

Neither function sorts its input; callers own that step so a cached sorted
snapshot can be reused across requests.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def standing_of(sorted_values: Sequence[float], target: float) -> float:
    """
    Return the percentile standing of *target* within *sorted_values*.

    Returns ``0.0`` for an empty population.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    if target <= sorted_values[0]:
        return 0.0
    if target >= sorted_values[-1]:
        return 100.0

    index = int(np.searchsorted(np.asarray(sorted_values, dtype=float), target, side="left"))
    return (index / n) * 100.0


def percentile_of_rank(sorted_values: Sequence[float], p: float) -> float:
    """
    Return the value at percentile *p* of *sorted_values*.

    The value sits at fractional index ``(p / 100) * (n - 1)``; a non-integral
    index is linearly interpolated between its two bracketing elements.
    ``p`` is clamped to [0, 100]. Returns ``0.0`` for an empty population.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    if n == 1:
        return float(sorted_values[0])

    clamped = min(100.0, max(0.0, float(p)))
    position = (clamped / 100.0) * (n - 1)
    lower = int(np.floor(position))
    upper = min(lower + 1, n - 1)
    fraction = position - lower

    low_value = float(sorted_values[lower])
    if fraction == 0.0:
        return low_value
    high_value = float(sorted_values[upper])
    return low_value + (high_value - low_value) * fraction


def median_of(sorted_values: Sequence[float]) -> float:
    """Median of an ascending-sorted population (``0.0`` when empty)."""
    return percentile_of_rank(sorted_values, 50)
