"""Public interface for the ``budget_tracker`` package.

Symbol re-exports only; see :mod:`budget_tracker.api` for the functions and
:mod:`budget_tracker.models` for the value types.
"""

from .api import (
    approve_month,
    create_bill_reminders,
    get_budget_snapshot,
    import_statement,
    list_approvals,
    list_transactions,
    parse_statement,
    parse_statement_file,
    recompute_budget_spent,
    reconcile,
    undo_month,
    upsert_budget,
)
from .errors import (
    BudgetTrackerError,
    ConflictError,
    NotFoundError,
    ReminderValidationError,
    ScopeError,
)
from .models import BudgetSnapshot, ImportResult, NormalizedTransaction

__all__ = [
    # API
    "parse_statement",
    "parse_statement_file",
    "import_statement",
    "approve_month",
    "undo_month",
    "list_approvals",
    "reconcile",
    "upsert_budget",
    "get_budget_snapshot",
    "recompute_budget_spent",
    "list_transactions",
    "create_bill_reminders",
    # Models / types
    "NormalizedTransaction",
    "ImportResult",
    "BudgetSnapshot",
    # Errors
    "BudgetTrackerError",
    "ConflictError",
    "ScopeError",
    "NotFoundError",
    "ReminderValidationError",
]
