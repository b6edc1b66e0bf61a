"""
db/models/submission.py

Anonymized financial submission.

Rows are written by the ingestion path and never updated afterwards; the
statistics engine only reads them. Every numeric column is nullable: NULL
means "not provided" and is kept distinct from zero.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class SubmissionRecord(Base):
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Demographics
    age: Mapped[float | None] = mapped_column(Float, nullable=True)
    yoe: Mapped[float | None] = mapped_column(Float, nullable=True, comment="Years of experience")
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(120), nullable=True)
    region: Mapped[str | None] = mapped_column(String(120), nullable=True)
    income_bracket: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Financials
    income_yearly: Mapped[float | None] = mapped_column(Float, nullable=True)
    monthly_expenses: Mapped[float | None] = mapped_column(Float, nullable=True)
    savings_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    liabilities_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    net_worth: Mapped[float | None] = mapped_column(Float, nullable=True)
    stock_value_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    mutual_fund_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    real_estate_total_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    gold_value_estimate: Mapped[float | None] = mapped_column(Float, nullable=True)

    additional_metrics: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Open map of extra numeric metrics, e.g. monthly_emi",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_submissions_city", "city"),
        Index("ix_submissions_occupation", "occupation"),
        Index("ix_submissions_age", "age"),
        Index("ix_submissions_yoe", "yoe"),
        Index("ix_submissions_created_at", "created_at"),
    )
