"""
Typed DTOs returned by submission store reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.domain.submission import Submission


@dataclass(frozen=True)
class FetchResult:
    """
    Rows returned by a bulk store read.

    ``complete`` is ``False`` when a page request failed part-way through; in
    that case ``rows`` still holds every row read before the failure and
    ``error`` describes it.
    """

    rows: list[Submission] = field(default_factory=list)
    complete: bool = True
    error: str | None = None
    pages: int = 0
