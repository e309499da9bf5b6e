from __future__ import annotations

import uuid
import datetime as _dt
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedColumn, mapped_column


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def _money(*, default: str = "0") -> MappedColumn[Decimal]:
    return mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal(default), server_default=text(default)
    )


# ---------------------------
# Core: budgets
# ---------------------------


class Budget(Base):
    """Planned and spent figures for one user's calendar month.

    Planned columns are named after the category key; spent columns carry the
    ``_spent`` suffix. ``uncategorized_spent`` has no planned counterpart.
    Spent columns are only ever rewritten wholesale by reconciliation.
    """

    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Income
    salary: Mapped[Decimal] = _money()
    bonus: Mapped[Decimal] = _money()

    # Planned limits
    rent: Mapped[Decimal] = _money()
    utilities: Mapped[Decimal] = _money()
    groceries: Mapped[Decimal] = _money()
    transport: Mapped[Decimal] = _money()
    entertainment: Mapped[Decimal] = _money()
    shopping: Mapped[Decimal] = _money()
    miscellaneous: Mapped[Decimal] = _money()
    savings: Mapped[Decimal] = _money()
    dining_out: Mapped[Decimal] = _money()
    health_pharmacy: Mapped[Decimal] = _money()
    fitness: Mapped[Decimal] = _money()
    personal_care: Mapped[Decimal] = _money()
    travel: Mapped[Decimal] = _money()
    education: Mapped[Decimal] = _money()
    takeaway_coffee: Mapped[Decimal] = _money()
    pubs_bars: Mapped[Decimal] = _money()
    clothing_apparel: Mapped[Decimal] = _money()
    home_hardware: Mapped[Decimal] = _money()
    online_services_subscriptions: Mapped[Decimal] = _money()
    money_transfer: Mapped[Decimal] = _money()
    delivery_takeaway: Mapped[Decimal] = _money()

    # Spent accumulators
    rent_spent: Mapped[Decimal] = _money()
    utilities_spent: Mapped[Decimal] = _money()
    groceries_spent: Mapped[Decimal] = _money()
    transport_spent: Mapped[Decimal] = _money()
    entertainment_spent: Mapped[Decimal] = _money()
    shopping_spent: Mapped[Decimal] = _money()
    miscellaneous_spent: Mapped[Decimal] = _money()
    savings_spent: Mapped[Decimal] = _money()
    dining_out_spent: Mapped[Decimal] = _money()
    health_pharmacy_spent: Mapped[Decimal] = _money()
    fitness_spent: Mapped[Decimal] = _money()
    personal_care_spent: Mapped[Decimal] = _money()
    travel_spent: Mapped[Decimal] = _money()
    education_spent: Mapped[Decimal] = _money()
    takeaway_coffee_spent: Mapped[Decimal] = _money()
    pubs_bars_spent: Mapped[Decimal] = _money()
    clothing_apparel_spent: Mapped[Decimal] = _money()
    home_hardware_spent: Mapped[Decimal] = _money()
    online_services_subscriptions_spent: Mapped[Decimal] = _money()
    money_transfer_spent: Mapped[Decimal] = _money()
    delivery_takeaway_spent: Mapped[Decimal] = _money()
    uncategorized_spent: Mapped[Decimal] = _money()

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "month", "year", name="uq_budgets_user_month_year"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month"),
    )


# ---------------------------
# Bill reminders
# ---------------------------


class BillReminder(Base):
    __tablename__ = "bill_reminders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    provider_name: Mapped[str] = mapped_column(String, nullable=False)
    due_date: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = _money()
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="EUR", server_default=text("'EUR'")
    )
    category: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String, nullable=True)
    reminders_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("due_date >= 1 AND due_date <= 31", name="ck_bill_reminders_due_date"),
    )


# ---------------------------
# Monthly approvals
# ---------------------------


class MonthlyApproval(Base):
    """Commit record binding an imported batch of transactions to a month.

    Owns the ``revolut_transactions`` rows that reference it; those rows must
    be deleted before the approval itself.
    """

    __tablename__ = "monthly_approvals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "month", "year", name="uq_monthly_approvals_user_month_year"),
    )


# ---------------------------
# Imported transactions
# ---------------------------


class RevolutTransaction(Base):
    __tablename__ = "revolut_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    # Module-qualified type: the attribute name shadows ``date`` in the class body.
    date: Mapped[_dt.date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="EUR", server_default=text("'EUR'")
    )
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    original_category: Mapped[str | None] = mapped_column(String, nullable=True)
    monthly_approval_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("monthly_approvals.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


__all__ = [
    "Base",
    "Budget",
    "BillReminder",
    "MonthlyApproval",
    "RevolutTransaction",
]
