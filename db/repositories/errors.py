"""
Repository-layer exceptions for submission reads.
"""

from __future__ import annotations


class SubmissionStoreError(Exception):
    """Base exception for submission store failures."""


class StoreUnavailableError(SubmissionStoreError):
    """Raised when the backing store is unreachable or a page request errors."""
