"""
db/repositories/submission_repository.py

SQLAlchemy-backed submission store.

Query design
------------
Pages are read with ``ORDER BY id LIMIT :limit OFFSET :offset`` so that offset
paging stays stable between requests. Only the fixed submission projection is
selected. The filtered read used by the dashboard cold-start fallback is one
statement with ``IN`` clauses per dimension (age bands become half-open
ranges)::

    SELECT <projection>
    FROM   submissions
    WHERE  city IN (:cities)
      AND  occupation IN (:occupations)
      AND  (age IN (:ages) OR (age >= :lo AND age < :hi) ...)
      AND  yoe IN (:yoe)

Every SQLAlchemyError is re-raised as StoreUnavailableError. This repository
never writes and never commits.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.filters import CohortFilters
from app.domain.submission import SUBMISSION_COLUMNS, Submission
from db.models.submission import SubmissionRecord
from db.repositories.base import SubmissionStore
from db.repositories.errors import StoreUnavailableError
from stats.bucketing import age_band_bounds

logger = logging.getLogger(__name__)


def _column(name: str) -> Any:
    try:
        return getattr(SubmissionRecord, name)
    except AttributeError as exc:
        raise ValueError(f"Unknown submission column {name!r}.") from exc


def _projection(columns: Sequence[str]) -> list[Any]:
    names = list(dict.fromkeys(["id", *columns]))
    return [_column(name) for name in names]


class SubmissionRepository(SubmissionStore):
    """
    Reads submissions through an active SQLAlchemy session.

    Parameters
    ----------
    session:
        Active SQLAlchemy session. The caller controls its lifecycle.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def fetch_page(
        self,
        offset: int,
        limit: int,
        columns: Sequence[str] = SUBMISSION_COLUMNS,
    ) -> list[Submission]:
        stmt = (
            select(*_projection(columns))
            .order_by(SubmissionRecord.id)
            .offset(max(0, offset))
            .limit(max(1, limit))
        )
        rows = self._execute(stmt, context=f"page offset={offset} limit={limit}")
        logger.debug("fetch_page offset=%d limit=%d → %d rows", offset, limit, len(rows))
        return rows

    def fetch_filtered(self, filters: CohortFilters) -> list[Submission]:
        stmt = select(*_projection(SUBMISSION_COLUMNS)).where(*self._filter_clauses(filters))
        rows = self._execute(stmt, context="filtered read")
        logger.debug("fetch_filtered filters=%s → %d rows", filters.to_dict(), len(rows))
        return rows

    def get_by_id(self, submission_id: str) -> Submission | None:
        try:
            key = uuid.UUID(str(submission_id))
        except ValueError:
            return None

        stmt = select(*_projection(SUBMISSION_COLUMNS)).where(SubmissionRecord.id == key)
        rows = self._execute(stmt, context=f"get id={submission_id}")
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _execute(self, stmt: Any, *, context: str) -> list[Submission]:
        try:
            result = self._session.execute(stmt)
            return [Submission.from_row(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreUnavailableError(f"Submission store {context} failed: {exc}") from exc

    @staticmethod
    def _filter_clauses(filters: CohortFilters) -> list[Any]:
        clauses: list[Any] = []
        if filters.city:
            clauses.append(SubmissionRecord.city.in_(filters.city))
        if filters.occupation:
            clauses.append(SubmissionRecord.occupation.in_(filters.occupation))
        if filters.ages or filters.age_bands:
            age_terms: list[Any] = []
            if filters.ages:
                age_terms.append(SubmissionRecord.age.in_([float(a) for a in filters.ages]))
            for band in filters.age_bands:
                lower, upper = age_band_bounds(band)
                bounds = []
                if lower is not None:
                    bounds.append(SubmissionRecord.age >= lower)
                if upper is not None:
                    bounds.append(SubmissionRecord.age < upper)
                age_terms.append(and_(*bounds))
            clauses.append(or_(*age_terms))
        if filters.yoe:
            clauses.append(SubmissionRecord.yoe.in_([float(y) for y in filters.yoe]))
        return clauses
