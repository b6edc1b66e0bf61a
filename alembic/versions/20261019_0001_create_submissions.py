"""create submissions table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

_NUMERIC_COLUMNS = (
    "age",
    "yoe",
    "income_yearly",
    "monthly_expenses",
    "savings_total",
    "liabilities_total",
    "net_worth",
    "stock_value_total",
    "mutual_fund_total",
    "real_estate_total_price",
    "gold_value_estimate",
)


def upgrade() -> None:
    op.create_table(
        "submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("occupation", sa.String(length=120), nullable=True),
        sa.Column("region", sa.String(length=120), nullable=True),
        sa.Column("income_bracket", sa.String(length=64), nullable=True),
        *(sa.Column(name, sa.Float(), nullable=True) for name in _NUMERIC_COLUMNS),
        sa.Column("additional_metrics", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_submissions_city", "submissions", ["city"], unique=False)
    op.create_index("ix_submissions_occupation", "submissions", ["occupation"], unique=False)
    op.create_index("ix_submissions_age", "submissions", ["age"], unique=False)
    op.create_index("ix_submissions_yoe", "submissions", ["yoe"], unique=False)
    op.create_index("ix_submissions_created_at", "submissions", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_submissions_created_at", table_name="submissions")
    op.drop_index("ix_submissions_yoe", table_name="submissions")
    op.drop_index("ix_submissions_age", table_name="submissions")
    op.drop_index("ix_submissions_occupation", table_name="submissions")
    op.drop_index("ix_submissions_city", table_name="submissions")
    op.drop_table("submissions")
