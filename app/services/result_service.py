"""
app/services/result_service.py

Per-submission metric lookup used by the results page.
"""

from __future__ import annotations

import logging

from db.repositories.base import SubmissionStore
from stats.metrics import ALLOWED_METRICS, metric_value

logger = logging.getLogger(__name__)


class ResultService:
    def __init__(self, store: SubmissionStore) -> None:
        self._store = store

    def metrics_for(self, submission_id: str) -> dict[str, float | None] | None:
        """
        Every ranking metric for one stored submission.

        Returns ``None`` when the submission does not exist. Absent values are
        reported as ``None``. StoreUnavailableError propagates to the caller.
        """
        submission = self._store.get_by_id(submission_id)
        if submission is None:
            logger.info("result lookup miss id=%s", submission_id)
            return None
        return {metric: metric_value(submission, metric) for metric in ALLOWED_METRICS}
