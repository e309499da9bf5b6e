"""Exception types raised by ``budget_tracker`` operations.

Import validation problems are never raised; they are collected on
:class:`budget_tracker.models.ImportResult`. The exceptions below are the
fatal outcomes of approval, undo, and store lookups. Persistence failures are
SQLAlchemy exceptions and propagate unchanged.
"""

from __future__ import annotations


class BudgetTrackerError(Exception):
    """Base class for fatal, user-facing errors."""


class ConflictError(BudgetTrackerError):
    """A monthly approval already exists for the requested period."""

    def __init__(self, month: int, year: int) -> None:
        self.month = month
        self.year = year
        super().__init__(
            f"You have already approved transactions for {month}/{year}. "
            "Please undo the previous approval first."
        )


class ScopeError(BudgetTrackerError):
    """The operation targets a period it is not allowed to touch."""


class NotFoundError(BudgetTrackerError):
    """The requested record does not exist."""


class ReminderValidationError(BudgetTrackerError, ValueError):
    """Bill reminder input or schedule failed validation."""


__all__ = [
    "BudgetTrackerError",
    "ConflictError",
    "ScopeError",
    "NotFoundError",
    "ReminderValidationError",
]
