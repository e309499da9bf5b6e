from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from tracker_db.client import session_scope
from tracker_db.models.finance import RevolutTransaction

from budget_tracker.api import get_budget_snapshot, import_statement, list_approvals, undo_month
from budget_tracker.errors import ConflictError
from budget_tracker.ingest.failures import InMemoryFailedImportLog

from tests.helpers.db import seed_budget

MARCH = date(2024, 3, 1)


def test_import_approve_reconcile_undo_cycle(db_url: str, data_dir: Path) -> None:
    seed_budget(
        database_url=db_url,
        user_id="u1",
        month=3,
        year=2024,
        planned={"rent": "1000", "groceries": "300", "takeaway_coffee": "20"},
    )
    progress: list[str] = []

    outcome = import_statement(
        data_dir / "statement_2024_03.csv",
        MARCH,
        user_id="u1",
        approve=True,
        database_url=db_url,
        on_progress=progress.append,
    )

    assert outcome.approved
    assert outcome.inserted == 4
    assert outcome.snapshot is not None
    spent = outcome.snapshot.spent
    assert spent["rent_spent"] == Decimal("1000")
    assert spent["groceries_spent"] == Decimal("45.20")
    assert spent["takeaway_coffee_spent"] == Decimal("4.50")
    assert spent["uncategorized_spent"] == Decimal("10.00")
    assert progress[0] == "Parsed 4 transaction(s) with 0 error(s)."

    with session_scope(database_url=db_url) as s:
        stored = get_budget_snapshot(s, user_id="u1", month=3, year=2024)
        assert stored.total_spent == Decimal("1059.70")
        assert [(a.month, a.transaction_count) for a in list_approvals(s, user_id="u1")] == [(3, 4)]

    with pytest.raises(ConflictError):
        import_statement(
            data_dir / "statement_2024_03.csv", MARCH, user_id="u1", approve=True, database_url=db_url
        )

    with session_scope(database_url=db_url) as s:
        assert undo_month(s, user_id="u1", month=3, year=2024, today=date(2024, 3, 31)) == 4
        assert s.query(RevolutTransaction).count() == 0
        assert get_budget_snapshot(s, user_id="u1", month=3, year=2024).total_spent == Decimal("0")


def test_positional_export_without_budget_skips_reconciliation(db_url: str, data_dir: Path) -> None:
    outcome = import_statement(
        data_dir / "statement_2024_03_positional.csv",
        MARCH,
        user_id="u1",
        approve=True,
        database_url=db_url,
    )
    assert outcome.approved
    assert outcome.inserted == 2
    assert outcome.snapshot is None


def test_partial_failure_still_approves_clean_rows(db_url: str, data_dir: Path) -> None:
    sink = InMemoryFailedImportLog()
    outcome = import_statement(
        data_dir / "statement_bad_dates.csv",
        MARCH,
        user_id="u1",
        approve=True,
        database_url=db_url,
        failure_sink=sink,
    )
    assert outcome.result.errors == ["Row 2: Invalid date format"]
    assert outcome.inserted == 2
    assert len(sink.entries) == 1


def test_preview_only_writes_nothing(db_url: str, data_dir: Path) -> None:
    outcome = import_statement(
        data_dir / "statement_2024_03.csv", MARCH, user_id="u1", database_url=db_url
    )
    assert not outcome.approved
    assert len(outcome.result.transactions) == 4
    with session_scope(database_url=db_url) as s:
        assert s.query(RevolutTransaction).count() == 0
