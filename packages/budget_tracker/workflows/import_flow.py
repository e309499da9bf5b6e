"""Workflow orchestrator for the statement import flow.

Composes parsing, approval, and budget reconciliation behind one call so the
CLI (and any other host) does not need to sequence them itself. Keeping this
code out of ``api.py`` keeps that module a light re-export surface.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from os import PathLike

from tracker_db.client import session_scope

from ..approvals import approve_month
from ..ingest.failures import FailedImportSink
from ..ingest.utils import StatementFormat
from ..importer import parse_statement_file
from ..logging_setup import get_logger
from ..models import BudgetSnapshot, ImportResult
from ..persistence import get_budget, recompute_budget_spent
from ..settings import ImportLimits

_logger = get_logger("budget_tracker.workflows.import_flow")


@dataclass(slots=True)
class ImportOutcome:
    result: ImportResult
    approval_id: str | None = None
    inserted: int = 0
    snapshot: BudgetSnapshot | None = None

    @property
    def approved(self) -> bool:
        return self.approval_id is not None


def import_statement(
    csv_path: str | PathLike[str],
    target_month: date,
    *,
    user_id: str,
    approve: bool = False,
    database_url: str | None = None,
    statement_format: StatementFormat = StatementFormat.AUTO,
    limits: ImportLimits | None = None,
    failure_sink: FailedImportSink | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> ImportOutcome:
    """End-to-end: CSV → parsed batch → (optional) approval → budget recompute.

    Parameters
    ----------
    csv_path:
        Path to a Revolut statement export.
    target_month:
        Any date in the month being imported.
    approve:
        When ``True`` and the batch has at least one transaction, persist it as
        the month's approval. Row errors do not block approval of the rows
        that parsed cleanly.
    database_url:
        Optional DB URL override. Falls back to ``DATABASE_URL`` when ``None``.
    on_progress:
        Optional callable to receive short status lines (e.g., ``print``).

    Raises
    ------
    ConflictError
        The month is already approved.
    """

    result = parse_statement_file(
        csv_path,
        target_month,
        statement_format=statement_format,
        limits=limits,
        failure_sink=failure_sink,
    )
    outcome = ImportOutcome(result=result)

    if on_progress:
        on_progress(
            f"Parsed {len(result.transactions)} transaction(s) with {len(result.errors)} error(s)."
        )
    if not approve:
        return outcome
    if not result.transactions:
        if on_progress:
            on_progress("Nothing to approve.")
        return outcome

    month, year = target_month.month, target_month.year
    with session_scope(database_url=database_url) as session:
        approval = approve_month(
            session, user_id=user_id, month=month, year=year, transactions=result.transactions
        )
        outcome.approval_id = approval.id
        outcome.inserted = len(result.transactions)
        if on_progress:
            on_progress(f"Approved {outcome.inserted} transaction(s) for {month}/{year}.")

        if get_budget(session, user_id=user_id, month=month, year=year) is not None:
            outcome.snapshot = recompute_budget_spent(
                session, user_id=user_id, month=month, year=year
            )
            if on_progress:
                on_progress(f"Budget spent updated: {outcome.snapshot.total_spent}.")
        else:
            _logger.info("No budget for %d/%d; skipping reconciliation", month, year)

    return outcome


__all__ = ["ImportOutcome", "import_statement"]
