"""Data models shared by the import pipeline, reconciliation and approvals.

Amounts are ``Decimal`` throughout. Sign convention for imported spending:
bank debits arrive negative and are stored positive (see
:mod:`budget_tracker.categories` for the per-vendor transforms).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NormalizedTransaction:
    """A parsed, classified, sign-adjusted spending event.

    ``description`` is the normalized description (lower-cased, whitespace
    collapsed) tagged with its originating file name. ``original_category``
    carries the bank's own transaction type (e.g. ``CARD_PAYMENT``).
    """

    date: date
    description: str
    amount: Decimal
    category: str
    original_category: str
    currency: str = "EUR"


# Derived identity used only for duplicate detection.
type TransactionKey = tuple[str, str, Decimal]


@dataclass(frozen=True, slots=True)
class RawStatementRow:
    """One row of a bank statement export, before any filtering.

    Exists only while parsing; every field is the raw cell text.
    """

    line_no: int
    type: str
    product: str
    started_date: str
    completed_date: str
    description: str
    amount: str
    fee: str
    currency: str
    state: str
    balance: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "Type": self.type,
            "Product": self.product,
            "Started Date": self.started_date,
            "Completed Date": self.completed_date,
            "Description": self.description,
            "Amount": self.amount,
            "Fee": self.fee,
            "Currency": self.currency,
            "State": self.state,
            "Balance": self.balance,
        }


@dataclass(slots=True)
class ImportResult:
    """Outcome of parsing one statement for one target month.

    Partial success is valid: ``errors`` may be non-empty while
    ``transactions`` still holds every row that passed.
    """

    transactions: list[NormalizedTransaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    unmapped_categories: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class FailedImport(BaseModel):
    """Retry-log entry persisted when an import produced row errors."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime
    filename: str
    errors: list[str]
    raw_rows: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BudgetSnapshot:
    """Planned and spent figures for one user's calendar month.

    ``planned`` is keyed by category key (``"groceries"``); ``spent`` is keyed
    by budget field (``"groceries_spent"``) and always carries every spent
    field, including ``uncategorized_spent``.
    """

    user_id: str
    month: int
    year: int
    salary: Decimal = Decimal("0")
    bonus: Decimal = Decimal("0")
    planned: Mapping[str, Decimal] = field(default_factory=dict)
    spent: Mapping[str, Decimal] = field(default_factory=dict)

    @property
    def total_planned(self) -> Decimal:
        return sum(self.planned.values(), Decimal("0"))

    @property
    def total_spent(self) -> Decimal:
        return sum(self.spent.values(), Decimal("0"))

    @property
    def income(self) -> Decimal:
        return self.salary + self.bonus


__all__ = [
    "NormalizedTransaction",
    "TransactionKey",
    "RawStatementRow",
    "ImportResult",
    "FailedImport",
    "BudgetSnapshot",
]
