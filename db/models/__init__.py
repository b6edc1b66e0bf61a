"""
Model package exports.

Import every SQLAlchemy model here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.submission import SubmissionRecord

__all__ = [
    "SubmissionRecord",
]
