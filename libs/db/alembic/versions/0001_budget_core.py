# ruff: noqa: I001
"""Budgets, bill reminders, monthly approvals and imported transactions.

Revision ID: 0001_budget_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_budget_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


_CATEGORY_KEYS: tuple[str, ...] = (
    "rent",
    "utilities",
    "groceries",
    "transport",
    "entertainment",
    "shopping",
    "miscellaneous",
    "savings",
    "dining_out",
    "health_pharmacy",
    "fitness",
    "personal_care",
    "travel",
    "education",
    "takeaway_coffee",
    "pubs_bars",
    "clothing_apparel",
    "home_hardware",
    "online_services_subscriptions",
    "money_transfer",
    "delivery_takeaway",
)


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default=sa.text("0"))


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    op.create_table(
        "budgets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        _money("salary"),
        _money("bonus"),
        *[_money(key) for key in _CATEGORY_KEYS],
        *[_money(f"{key}_spent") for key in _CATEGORY_KEYS],
        _money("uncategorized_spent"),
        _created_at(),
        sa.UniqueConstraint("user_id", "month", "year", name="uq_budgets_user_month_year"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month"),
    )

    op.create_table(
        "bill_reminders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("provider_name", sa.Text(), nullable=False),
        sa.Column("due_date", sa.Integer(), nullable=False),
        _money("amount"),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'EUR'")),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column(
            "reminders_enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        _created_at(),
        sa.CheckConstraint("due_date >= 1 AND due_date <= 31", name="ck_bill_reminders_due_date"),
    )
    op.create_index("ix_bill_reminders_user_id", "bill_reminders", ["user_id"])

    op.create_table(
        "monthly_approvals",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "user_id", "month", "year", name="uq_monthly_approvals_user_month_year"
        ),
    )

    op.create_table(
        "revolut_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'EUR'")),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("original_category", sa.Text(), nullable=True),
        sa.Column(
            "monthly_approval_id",
            sa.String(36),
            sa.ForeignKey("monthly_approvals.id"),
            nullable=True,
        ),
        _created_at(),
    )
    op.create_index(
        "ix_revolut_transactions_user_date", "revolut_transactions", ["user_id", "date"]
    )
    op.create_index(
        "ix_revolut_transactions_approval", "revolut_transactions", ["monthly_approval_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_revolut_transactions_approval", table_name="revolut_transactions")
    op.drop_index("ix_revolut_transactions_user_date", table_name="revolut_transactions")
    op.drop_table("revolut_transactions")
    op.drop_table("monthly_approvals")
    op.drop_index("ix_bill_reminders_user_id", table_name="bill_reminders")
    op.drop_table("bill_reminders")
    op.drop_table("budgets")
