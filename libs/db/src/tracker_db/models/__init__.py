"""Shared SQLAlchemy models registry for the budget tracker database."""

from .finance import Base, BillReminder, Budget, MonthlyApproval, RevolutTransaction

__all__ = [
    "Base",
    "Budget",
    "BillReminder",
    "MonthlyApproval",
    "RevolutTransaction",
]
