"""Budget reconciliation: recompute spent figures from transactions.

:func:`reconcile` never increments in place. It starts from a snapshot whose
spent fields are all zero and assigns the per-field sums, so running it any
number of times over the same transactions yields the same snapshot.

Conservation: the sum of every spent field equals the sum of ``abs(amount)``
over the input. Categories without a mapping (including ``"Uncategorized"``)
land in ``uncategorized_spent``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from .categories import SPENT_FIELDS, budget_field_for
from .models import BudgetSnapshot, NormalizedTransaction

_ZERO = Decimal("0")


def sum_by_category(transactions: Iterable[NormalizedTransaction]) -> dict[str, Decimal]:
    """Sum ``abs(amount)`` per category name, in first-seen order."""

    totals: dict[str, Decimal] = {}
    for tx in transactions:
        totals[tx.category] = totals.get(tx.category, _ZERO) + abs(tx.amount)
    return totals


def spent_by_field(transactions: Iterable[NormalizedTransaction]) -> dict[str, Decimal]:
    """Map category totals onto budget spent fields; every field is present."""

    spent: dict[str, Decimal] = dict.fromkeys(SPENT_FIELDS, _ZERO)
    for category, total in sum_by_category(transactions).items():
        field = budget_field_for(category)
        spent[field] += total
    return spent


def reconcile(
    scoped_transactions: Iterable[NormalizedTransaction], snapshot: BudgetSnapshot
) -> BudgetSnapshot:
    """Return a copy of ``snapshot`` whose spent fields reflect the transactions.

    The caller is responsible for scoping the transactions to the snapshot's
    month and for persisting the result.
    """

    return replace(snapshot, spent=spent_by_field(scoped_transactions))


__all__ = ["sum_by_category", "spent_by_field", "reconcile"]
