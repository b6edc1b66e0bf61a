"""
Repository layer exports.
"""

from db.repositories.base import DEFAULT_PAGE_SIZE, SubmissionStore
from db.repositories.errors import StoreUnavailableError, SubmissionStoreError
from db.repositories.submission_repository import SubmissionRepository
from db.repositories.types import FetchResult

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FetchResult",
    "StoreUnavailableError",
    "SubmissionRepository",
    "SubmissionStore",
    "SubmissionStoreError",
]
