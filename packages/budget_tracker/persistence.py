"""Persistence integration for budgets and imported transactions.

Functions here read and write the shared database owned by ``libs/db``
through a caller-provided SQLAlchemy session. None of them commit; the caller
(usually :func:`tracker_db.client.session_scope`) owns the unit of work.

Scope:
- Budgets: upsert by ``(user_id, month, year)``, snapshot conversion, and
  wholesale spent-field writes.
- Transactions: bulk insert tagged with an approval id, and reads converted
  back to :class:`~budget_tracker.models.NormalizedTransaction`.
- Reconciliation recompute from stored transactions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session
from tracker_db.models.finance import Budget, RevolutTransaction

from .categories import PLANNED_FIELDS, SPENT_FIELDS
from .duplicates import dedupe
from .errors import NotFoundError
from .logging_setup import get_logger
from .models import BudgetSnapshot, NormalizedTransaction
from .reconcile import reconcile
from .scoping import scope_to_month

_logger = get_logger("budget_tracker.persistence")


def _validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be within 1..12, got {month}")
    if year < 1:
        raise ValueError(f"year must be positive, got {year}")


# ---------------------------
# Budgets
# ---------------------------


def snapshot_from_row(row: Budget) -> BudgetSnapshot:
    return BudgetSnapshot(
        user_id=row.user_id,
        month=row.month,
        year=row.year,
        salary=Decimal(row.salary),
        bonus=Decimal(row.bonus),
        planned={key: Decimal(getattr(row, key)) for key in PLANNED_FIELDS},
        spent={field: Decimal(getattr(row, field)) for field in SPENT_FIELDS},
    )


def get_budget(session: Session, *, user_id: str, month: int, year: int) -> Budget | None:
    stmt = select(Budget).where(
        Budget.user_id == user_id, Budget.month == month, Budget.year == year
    )
    return session.execute(stmt).scalar_one_or_none()


def get_budget_snapshot(
    session: Session, *, user_id: str, month: int, year: int
) -> BudgetSnapshot:
    row = get_budget(session, user_id=user_id, month=month, year=year)
    if row is None:
        raise NotFoundError(f"No budget found for {month}/{year}")
    return snapshot_from_row(row)


def upsert_budget(
    session: Session,
    *,
    user_id: str,
    month: int,
    year: int,
    salary: Decimal | None = None,
    bonus: Decimal | None = None,
    planned: Mapping[str, Decimal] | None = None,
) -> Budget:
    """Create the budget for a period on first save, update it afterwards.

    Only the income and planned fields passed in are written; spent fields are
    owned by reconciliation and left alone.
    """

    _validate_period(month, year)
    planned = dict(planned or {})
    unknown = sorted(k for k in planned if k not in PLANNED_FIELDS)
    if unknown:
        raise ValueError(f"Unknown budget categories: {', '.join(unknown)}")
    negative = sorted(k for k, v in planned.items() if v < 0)
    if negative:
        raise ValueError(f"Planned amounts must not be negative: {', '.join(negative)}")

    row = get_budget(session, user_id=user_id, month=month, year=year)
    if row is None:
        row = Budget(user_id=user_id, month=month, year=year)
        session.add(row)
        _logger.info("Creating budget for %s %d/%d", user_id, month, year)

    if salary is not None:
        row.salary = salary
    if bonus is not None:
        row.bonus = bonus
    for key, value in planned.items():
        setattr(row, key, value)
    session.flush()
    return row


def save_spent(session: Session, snapshot: BudgetSnapshot) -> Budget:
    """Write every spent field of ``snapshot`` to its stored budget row."""

    row = get_budget(session, user_id=snapshot.user_id, month=snapshot.month, year=snapshot.year)
    if row is None:
        raise NotFoundError(f"No budget found for {snapshot.month}/{snapshot.year}")
    for field in SPENT_FIELDS:
        setattr(row, field, snapshot.spent.get(field, Decimal("0")))
    session.flush()
    return row


# ---------------------------
# Transactions
# ---------------------------


def insert_transactions(
    session: Session,
    *,
    user_id: str,
    transactions: Iterable[NormalizedTransaction],
    monthly_approval_id: str | None = None,
) -> int:
    rows = [
        RevolutTransaction(
            user_id=user_id,
            date=tx.date,
            description=tx.description,
            amount=tx.amount,
            currency=tx.currency,
            category=tx.category,
            original_category=tx.original_category,
            monthly_approval_id=monthly_approval_id,
        )
        for tx in transactions
    ]
    session.add_all(rows)
    session.flush()
    return len(rows)


def _to_normalized(row: RevolutTransaction) -> NormalizedTransaction:
    return NormalizedTransaction(
        date=row.date,
        description=row.description,
        amount=Decimal(row.amount),
        category=row.category or "Uncategorized",
        original_category=row.original_category or "",
        currency=row.currency,
    )


def load_transactions(session: Session, *, user_id: str) -> list[NormalizedTransaction]:
    """Return every stored transaction for ``user_id``, oldest first."""

    stmt = (
        select(RevolutTransaction)
        .where(RevolutTransaction.user_id == user_id)
        .order_by(RevolutTransaction.date, RevolutTransaction.created_at)
    )
    return [_to_normalized(r) for r in session.execute(stmt).scalars()]


def list_transactions(
    session: Session, *, user_id: str, month: int, year: int
) -> list[NormalizedTransaction]:
    """Stored transactions for one month (closed interval), duplicates removed."""

    _validate_period(month, year)
    return dedupe(scope_to_month(load_transactions(session, user_id=user_id), date(year, month, 1)))


def recompute_budget_spent(
    session: Session, *, user_id: str, month: int, year: int
) -> BudgetSnapshot:
    """Reconcile the stored budget for a period against stored transactions.

    Safe to re-run: spent fields are recomputed wholesale each time. Raises
    :class:`NotFoundError` when no budget exists for the period.
    """

    snapshot = get_budget_snapshot(session, user_id=user_id, month=month, year=year)
    txns = list_transactions(session, user_id=user_id, month=month, year=year)
    updated = reconcile(txns, snapshot)
    save_spent(session, updated)
    _logger.info(
        "Reconciled %d/%d for %s: %d transaction(s), spent %s",
        month,
        year,
        user_id,
        len(txns),
        updated.total_spent,
    )
    return updated


__all__ = [
    "snapshot_from_row",
    "get_budget",
    "get_budget_snapshot",
    "upsert_budget",
    "save_spent",
    "insert_transactions",
    "load_transactions",
    "list_transactions",
    "recompute_budget_spent",
]
