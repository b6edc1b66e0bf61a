"""
db/repositories/base.py

Contract for bulk, paginated submission reads.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.domain.filters import CohortFilters
from app.domain.submission import SUBMISSION_COLUMNS, Submission
from app.logging_utils import log_event
from db.repositories.errors import StoreUnavailableError
from db.repositories.types import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000


class SubmissionStore(ABC):
    """
    Read-only source of submission records.

    Subclasses implement single-page, filtered and by-id reads and raise
    :class:`StoreUnavailableError` for any backend failure. :meth:`fetch_all`
    drives pagination on top of :meth:`fetch_page` and is safe to call
    repeatedly: it keeps no state between calls and has no side effects.
    """

    @abstractmethod
    def fetch_page(
        self,
        offset: int,
        limit: int,
        columns: Sequence[str] = SUBMISSION_COLUMNS,
    ) -> list[Submission]:
        """Return up to *limit* rows starting at *offset* in a stable order."""

    @abstractmethod
    def fetch_filtered(self, filters: CohortFilters) -> list[Submission]:
        """Return every row matching *filters* in a single query."""

    @abstractmethod
    def get_by_id(self, submission_id: str) -> Submission | None:
        """Return one submission, or ``None`` if it does not exist."""

    def fetch_all(
        self,
        columns: Sequence[str] = SUBMISSION_COLUMNS,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> FetchResult:
        """
        Read the whole population page by page.

        Stops at the first short (or empty) page. When a page request fails,
        the rows gathered so far are returned with ``complete=False``; earlier
        pages are never thrown away.
        """
        size = max(1, page_size)
        rows: list[Submission] = []
        offset = 0
        pages = 0

        while True:
            try:
                page = self.fetch_page(offset, size, columns)
            except StoreUnavailableError as exc:
                log_event(
                    logger,
                    logging.ERROR,
                    "store_page_failed",
                    offset=offset,
                    page_size=size,
                    rows_so_far=len(rows),
                    error=str(exc),
                )
                return FetchResult(rows=rows, complete=False, error=str(exc), pages=pages)

            pages += 1
            rows.extend(page)
            if len(page) < size:
                break
            offset += size

        log_event(logger, logging.DEBUG, "store_fetch_all", rows=len(rows), pages=pages)
        return FetchResult(rows=rows, complete=True, pages=pages)

    def fetch_filtered_result(self, filters: CohortFilters) -> FetchResult:
        """:meth:`fetch_filtered` with failures folded into an empty result."""
        try:
            rows = self.fetch_filtered(filters)
        except StoreUnavailableError as exc:
            log_event(logger, logging.ERROR, "store_filtered_failed", filters=filters.to_dict(), error=str(exc))
            return FetchResult(rows=[], complete=False, error=str(exc))
        return FetchResult(rows=rows, complete=True, pages=1)
