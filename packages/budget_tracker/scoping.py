"""Calendar-month scoping and transaction filters.

Two interval conventions coexist on purpose:

- :func:`in_import_window` is the importer's pre-filter, half-open
  ``[start_of_month, start_of_next_month)`` over completion timestamps.
- :func:`scope_to_month` is the general "transactions for month X" view,
  closed ``[start_of_month, end_of_month]`` where the end is the last
  representable instant of the month's final day.

Call sites depend on their own boundary behavior; keep them separate.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime, time

from .models import NormalizedTransaction


def start_of_month(target: date) -> datetime:
    return datetime(target.year, target.month, 1)


def start_of_next_month(target: date) -> datetime:
    if target.month == 12:
        return datetime(target.year + 1, 1, 1)
    return datetime(target.year, target.month + 1, 1)


def end_of_month(target: date) -> datetime:
    last_day = calendar.monthrange(target.year, target.month)[1]
    return datetime.combine(date(target.year, target.month, last_day), time.max)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)


def in_import_window(moment: date | datetime, target: date) -> bool:
    """Half-open month membership used while importing a statement."""

    m = _as_datetime(moment)
    return start_of_month(target) <= m < start_of_next_month(target)


def scope_to_month(
    transactions: Iterable[NormalizedTransaction], target: date
) -> list[NormalizedTransaction]:
    """Return transactions dated within ``target``'s month, bounds inclusive."""

    start, end = start_of_month(target), end_of_month(target)
    return [tx for tx in transactions if start <= _as_datetime(tx.date) <= end]


def filter_transactions(
    transactions: Iterable[NormalizedTransaction],
    *,
    category: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search_term: str | None = None,
) -> list[NormalizedTransaction]:
    """Apply the transaction-table filters.

    ``category`` of ``None`` or ``"All"`` keeps every category; date bounds are
    inclusive; ``search_term`` is a case-insensitive description substring.
    """

    needle = (search_term or "").strip().lower()
    out: list[NormalizedTransaction] = []
    for tx in transactions:
        if category and category != "All" and tx.category != category:
            continue
        if date_from is not None and tx.date < date_from:
            continue
        if date_to is not None and tx.date > date_to:
            continue
        if needle and needle not in tx.description.lower():
            continue
        out.append(tx)
    return out


__all__ = [
    "start_of_month",
    "start_of_next_month",
    "end_of_month",
    "in_import_window",
    "scope_to_month",
    "filter_transactions",
]
