"""
app/domain package marker.
"""

from app.domain.submission import CATEGORICAL_FIELDS, NUMERIC_FIELDS, SUBMISSION_COLUMNS, Submission

__all__ = [
    "CATEGORICAL_FIELDS",
    "NUMERIC_FIELDS",
    "SUBMISSION_COLUMNS",
    "Submission",
]
