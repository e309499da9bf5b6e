from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from tracker_db.client import session_scope
from tracker_db.models.finance import Budget

from budget_tracker.errors import NotFoundError
from budget_tracker.models import NormalizedTransaction
from budget_tracker.persistence import (
    get_budget_snapshot,
    insert_transactions,
    list_transactions,
    recompute_budget_spent,
    upsert_budget,
)

from tests.helpers.db import seed_budget


def _tx(day: date, desc: str, amount: str, category: str) -> NormalizedTransaction:
    return NormalizedTransaction(
        date=day,
        description=desc,
        amount=Decimal(amount),
        category=category,
        original_category="CARD_PAYMENT",
    )


def test_upsert_creates_then_updates_single_row(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        upsert_budget(
            s, user_id="u1", month=3, year=2024, salary=Decimal("3000"),
            planned={"groceries": Decimal("400")},
        )
    with session_scope(database_url=db_url) as s:
        upsert_budget(s, user_id="u1", month=3, year=2024, planned={"rent": Decimal("1000")})

    with session_scope(database_url=db_url) as s:
        assert s.query(Budget).count() == 1
        snap = get_budget_snapshot(s, user_id="u1", month=3, year=2024)
    assert snap.salary == Decimal("3000")
    assert snap.planned["groceries"] == Decimal("400")
    assert snap.planned["rent"] == Decimal("1000")
    assert snap.total_planned == Decimal("1400")
    assert snap.total_spent == Decimal("0")


def test_upsert_rejects_unknown_and_negative_categories(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        with pytest.raises(ValueError, match="Unknown budget categories"):
            upsert_budget(s, user_id="u1", month=3, year=2024, planned={"yachts": Decimal("1")})
        with pytest.raises(ValueError, match="must not be negative"):
            upsert_budget(s, user_id="u1", month=3, year=2024, planned={"rent": Decimal("-1")})
        with pytest.raises(ValueError, match="month"):
            upsert_budget(s, user_id="u1", month=13, year=2024)


def test_missing_budget_is_not_found(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        with pytest.raises(NotFoundError):
            get_budget_snapshot(s, user_id="u1", month=1, year=2024)


def test_recompute_uses_closed_month_scope_and_dedupes(db_url: str) -> None:
    seed_budget(database_url=db_url, user_id="u1", month=2, year=2024, planned={"groceries": "300"})
    with session_scope(database_url=db_url) as s:
        insert_transactions(
            s,
            user_id="u1",
            transactions=[
                _tx(date(2024, 2, 1), "tesco", "20.00", "Groceries"),
                _tx(date(2024, 2, 29), "aldi", "30.00", "Groceries"),
                _tx(date(2024, 2, 29), "aldi", "30.00", "Groceries"),
                _tx(date(2024, 3, 1), "lidl", "99.00", "Groceries"),
                _tx(date(2024, 2, 10), "mystery", "5.00", "Uncategorized"),
            ],
        )
        # Another user's spending never leaks in.
        insert_transactions(
            s, user_id="u2", transactions=[_tx(date(2024, 2, 5), "tesco", "70.00", "Groceries")]
        )

    with session_scope(database_url=db_url) as s:
        snap = recompute_budget_spent(s, user_id="u1", month=2, year=2024)
    assert snap.spent["groceries_spent"] == Decimal("50.00")
    assert snap.spent["uncategorized_spent"] == Decimal("5.00")

    with session_scope(database_url=db_url) as s:
        again = recompute_budget_spent(s, user_id="u1", month=2, year=2024)
        stored = get_budget_snapshot(s, user_id="u1", month=2, year=2024)
    assert again == snap
    assert stored.spent["groceries_spent"] == Decimal("50.00")


def test_list_transactions_for_month(db_url: str) -> None:
    with session_scope(database_url=db_url) as s:
        insert_transactions(
            s,
            user_id="u1",
            transactions=[
                _tx(date(2024, 3, 9), "b", "2.00", "Groceries"),
                _tx(date(2024, 3, 2), "a", "1.00", "Groceries"),
                _tx(date(2024, 4, 1), "c", "3.00", "Groceries"),
            ],
        )
    with session_scope(database_url=db_url) as s:
        txns = list_transactions(s, user_id="u1", month=3, year=2024)
    assert [t.description for t in txns] == ["a", "b"]
    assert txns[0].amount == Decimal("1.00")
