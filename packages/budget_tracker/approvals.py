"""Monthly approval lifecycle: approve, undo, and history.

States per ``(user_id, month, year)``::

    NoApproval --approve--> Pending --insert txns--> Approved
    Approved --undo (current month only)--> NoApproval

Approve writes in two separate commits (approval row, then its transactions).
When the second write fails the approval row is deleted again before the
original error propagates, so a Pending approval never outlives a failed
call. Both operations commit on the caller's session.

Concurrent approvals for the same period are settled by the store's unique
constraint: the losing writer gets :class:`~budget_tracker.errors.ConflictError`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from tracker_db.models.finance import MonthlyApproval, RevolutTransaction

from .errors import ConflictError, NotFoundError, ScopeError
from .logging_setup import get_logger
from .models import NormalizedTransaction
from .persistence import get_budget, insert_transactions, recompute_budget_spent

_logger = get_logger("budget_tracker.approvals")


@dataclass(frozen=True, slots=True)
class ApprovalSummary:
    id: str
    month: int
    year: int
    created_at: datetime | None
    approved_at: datetime | None
    transaction_count: int


def find_approval(
    session: Session, *, user_id: str, month: int, year: int
) -> MonthlyApproval | None:
    stmt = select(MonthlyApproval).where(
        MonthlyApproval.user_id == user_id,
        MonthlyApproval.month == month,
        MonthlyApproval.year == year,
    )
    return session.execute(stmt).scalar_one_or_none()


def approve_month(
    session: Session,
    *,
    user_id: str,
    month: int,
    year: int,
    transactions: Iterable[NormalizedTransaction],
) -> MonthlyApproval:
    """Commit ``transactions`` as the approved batch for a period.

    Raises
    ------
    ConflictError
        An approval already exists for the period (undo it first).
    SQLAlchemyError
        The transaction insert failed; the approval row has been removed.
    """

    if not 1 <= month <= 12:
        raise ValueError(f"month must be within 1..12, got {month}")

    if find_approval(session, user_id=user_id, month=month, year=year) is not None:
        raise ConflictError(month, year)

    txns = list(transactions)
    approval = MonthlyApproval(user_id=user_id, month=month, year=year)
    session.add(approval)
    try:
        session.commit()
    except IntegrityError as e:
        # Lost a race against another approval for the same period.
        session.rollback()
        raise ConflictError(month, year) from e
    approval_id = approval.id

    try:
        inserted = insert_transactions(
            session, user_id=user_id, transactions=txns, monthly_approval_id=approval_id
        )
        approval.approved_at = datetime.now(UTC)
        session.commit()
    except Exception:
        session.rollback()
        _logger.warning(
            "Transaction insert failed for %d/%d; removing approval %s", month, year, approval_id
        )
        try:
            session.execute(delete(MonthlyApproval).where(MonthlyApproval.id == approval_id))
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            _logger.exception("Compensating delete of approval %s failed", approval_id)
        raise

    _logger.info(
        "Approved %d/%d for %s with %d transaction(s)", month, year, user_id, inserted
    )
    return approval


def undo_month(
    session: Session,
    *,
    user_id: str,
    month: int,
    year: int,
    today: date | None = None,
) -> int:
    """Remove the approval for the current month and every transaction it owns.

    Returns the number of transactions deleted. A budget for the period has its
    spent figures recomputed in the same commit. Periods other than the current
    calendar month are refused with :class:`ScopeError`; a missing approval is
    a :class:`NotFoundError`.
    """

    today = today or date.today()
    if (month, year) != (today.month, today.year):
        raise ScopeError(
            f"Can only undo current month approvals ({today.month}/{today.year}); "
            f"refusing to undo {month}/{year}"
        )

    approval = find_approval(session, user_id=user_id, month=month, year=year)
    if approval is None:
        raise NotFoundError(f"No approval found for {month}/{year}")

    # Owned transactions first; they reference the approval.
    deleted = session.execute(
        delete(RevolutTransaction).where(RevolutTransaction.monthly_approval_id == approval.id)
    ).rowcount
    session.execute(delete(MonthlyApproval).where(MonthlyApproval.id == approval.id))
    if get_budget(session, user_id=user_id, month=month, year=year) is not None:
        recompute_budget_spent(session, user_id=user_id, month=month, year=year)
    session.commit()

    _logger.info("Undid approval %d/%d for %s (%d transaction(s))", month, year, user_id, deleted)
    return deleted or 0


def list_approvals(session: Session, *, user_id: str) -> list[ApprovalSummary]:
    """Approval history for ``user_id``, newest period first, with row counts."""

    count = func.count(RevolutTransaction.id)
    stmt = (
        select(MonthlyApproval, count)
        .outerjoin(RevolutTransaction, RevolutTransaction.monthly_approval_id == MonthlyApproval.id)
        .where(MonthlyApproval.user_id == user_id)
        .group_by(MonthlyApproval.id)
        .order_by(MonthlyApproval.year.desc(), MonthlyApproval.month.desc())
    )
    return [
        ApprovalSummary(
            id=a.id,
            month=a.month,
            year=a.year,
            created_at=a.created_at,
            approved_at=a.approved_at,
            transaction_count=int(n),
        )
        for a, n in session.execute(stmt).all()
    ]


__all__ = [
    "ApprovalSummary",
    "find_approval",
    "approve_month",
    "undo_month",
    "list_approvals",
]
