from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from tracker_db.client import session_scope
from tracker_db.models.finance import MonthlyApproval, RevolutTransaction

import budget_tracker.approvals as approvals_mod
from budget_tracker.approvals import approve_month, list_approvals, undo_month
from budget_tracker.errors import ConflictError, NotFoundError, ScopeError
from budget_tracker.models import NormalizedTransaction
from budget_tracker.persistence import get_budget_snapshot, recompute_budget_spent

from tests.helpers.db import seed_budget


def _txns(month: int = 3, year: int = 2024) -> list[NormalizedTransaction]:
    return [
        NormalizedTransaction(
            date=date(year, month, 5),
            description="tesco dublin (from file: s.csv)",
            amount=Decimal("45.20"),
            category="Groceries",
            original_category="CARD_PAYMENT",
        ),
        NormalizedTransaction(
            date=date(year, month, 6),
            description="unknown vendor xyz (from file: s.csv)",
            amount=Decimal("10.00"),
            category="Uncategorized",
            original_category="CARD_PAYMENT",
        ),
    ]


def _counts(db_url: str) -> tuple[int, int]:
    with session_scope(database_url=db_url) as s:
        return s.query(MonthlyApproval).count(), s.query(RevolutTransaction).count()


def test_approve_persists_batch_tagged_with_approval(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        approval = approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
        approval_id = approval.id

    with session_scope(database_url=db_url) as s:
        rows = s.query(RevolutTransaction).all()
        stored = s.get(MonthlyApproval, approval_id)
        assert stored is not None and stored.approved_at is not None
    assert len(rows) == 2
    assert {r.monthly_approval_id for r in rows} == {approval_id}
    assert {r.user_id for r in rows} == {"u1"}


def test_second_approval_for_same_month_conflicts(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())

    with session_scope(database_url=db_url) as s:
        with pytest.raises(ConflictError) as exc:
            approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
    assert "3/2024" in str(exc.value)
    assert "undo the previous approval" in str(exc.value)
    assert _counts(db_url) == (1, 2)


def test_approvals_are_per_user(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
        approve_month(s, user_id="u2", month=3, year=2024, transactions=_txns())
    assert _counts(db_url) == (2, 4)


def test_failed_insert_removes_the_approval(db_url: str, monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(*_a, **_k):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(approvals_mod, "insert_transactions", _boom)
    with session_scope(database_url=db_url) as s:
        with pytest.raises(RuntimeError, match="insert failed"):
            approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())

    assert _counts(db_url) == (0, 0)

    # The period is free again once the failure is compensated.
    monkeypatch.undo()
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
    assert _counts(db_url) == (1, 2)


def test_undo_current_month_removes_approval_and_transactions(db_url: str) -> None:
    today = date(2024, 3, 20)
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
    with session_scope(database_url=db_url) as s:
        deleted = undo_month(s, user_id="u1", month=3, year=2024, today=today)
    assert deleted == 2
    assert _counts(db_url) == (0, 0)

    # approve -> undo -> approve succeeds
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
    assert _counts(db_url) == (1, 2)


def test_undo_outside_current_month_is_refused(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=1, year=2023, transactions=_txns(1, 2023))
    with session_scope(database_url=db_url) as s:
        with pytest.raises(ScopeError, match="Can only undo current month approvals"):
            undo_month(s, user_id="u1", month=1, year=2023, today=date(2024, 1, 15))
    assert _counts(db_url) == (1, 2)


def test_undo_without_approval_is_not_found(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        with pytest.raises(NotFoundError, match="No approval found for 3/2024"):
            undo_month(s, user_id="u1", month=3, year=2024, today=date(2024, 3, 1))


def test_list_approvals_newest_first_with_counts(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=1, year=2024, transactions=_txns(1, 2024)[:1])
        approve_month(s, user_id="u1", month=12, year=2023, transactions=[])
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
        approve_month(s, user_id="other", month=5, year=2024, transactions=_txns(5, 2024))

    with session_scope(database_url=db_url) as s:
        history = list_approvals(s, user_id="u1")
    assert [(a.year, a.month, a.transaction_count) for a in history] == [
        (2024, 3, 2),
        (2024, 1, 1),
        (2023, 12, 0),
    ]


def test_undo_resets_budget_spent(db_url: str) -> None:
    seed_budget(database_url=db_url, user_id="u1", month=3, year=2024, planned={"groceries": "300"})
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())
        recompute_budget_spent(s, user_id="u1", month=3, year=2024)
        s.commit()
    with session_scope(database_url=db_url) as s:
        assert get_budget_snapshot(s, user_id="u1", month=3, year=2024).total_spent == Decimal("55.20")

    with session_scope(database_url=db_url) as s:
        undo_month(s, user_id="u1", month=3, year=2024, today=date(2024, 3, 31))

    with session_scope(database_url=db_url) as s:
        snap = get_budget_snapshot(s, user_id="u1", month=3, year=2024)
    assert snap.total_spent == Decimal("0")
    assert snap.spent["groceries_spent"] == Decimal("0")


def test_unique_constraint_race_becomes_conflict(
    db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    with session_scope(database_url=db_url) as s:
        approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())

    # Second writer misses the existing row on its pre-check.
    monkeypatch.setattr(approvals_mod, "find_approval", lambda *_a, **_k: None)
    with session_scope(database_url=db_url) as s:
        with pytest.raises(ConflictError):
            approve_month(s, user_id="u1", month=3, year=2024, transactions=_txns())

    assert _counts(db_url) == (1, 2)
