"""Public API surface for the ``budget_tracker`` package.

A stable import surface only: the implementations live in the modules they
are re-exported from. Database-backed functions take an explicit SQLAlchemy
session (see :mod:`tracker_db.client`); pure functions take plain values.
"""

from __future__ import annotations

from .approvals import ApprovalSummary, approve_month, list_approvals, undo_month
from .categories import budget_field_for, classify
from .duplicates import dedupe, transaction_key
from .importer import parse_statement, parse_statement_file
from .persistence import (
    get_budget_snapshot,
    list_transactions,
    recompute_budget_spent,
    save_spent,
    upsert_budget,
)
from .reconcile import reconcile
from .reminders import (
    create_bill_reminders,
    delete_bill_reminder,
    find_reminders_by_provider,
    list_bill_reminders,
    update_bill_reminder,
)
from .scoping import filter_transactions, in_import_window, scope_to_month
from .workflows.import_flow import ImportOutcome, import_statement

__all__ = [
    # Import
    "parse_statement",
    "parse_statement_file",
    "classify",
    "budget_field_for",
    "dedupe",
    "transaction_key",
    "in_import_window",
    "scope_to_month",
    "filter_transactions",
    # Approval lifecycle
    "approve_month",
    "undo_month",
    "list_approvals",
    "ApprovalSummary",
    # Budgets
    "reconcile",
    "upsert_budget",
    "get_budget_snapshot",
    "save_spent",
    "recompute_budget_spent",
    "list_transactions",
    # Bill reminders
    "create_bill_reminders",
    "find_reminders_by_provider",
    "list_bill_reminders",
    "update_bill_reminder",
    "delete_bill_reminder",
    # Workflows
    "import_statement",
    "ImportOutcome",
]
