"""Duplicate detection for normalized transactions.

Two transactions with the same key (ISO date, description, amount) are the
same economic event. Descriptions already carry the originating file name, so
re-importing an identical file collapses while identical rows from different
files are kept apart.
"""

from __future__ import annotations

from collections.abc import Iterable

from .logging_setup import get_logger
from .models import NormalizedTransaction, TransactionKey

_logger = get_logger("budget_tracker.duplicates")


def transaction_key(tx: NormalizedTransaction) -> TransactionKey:
    return (tx.date.isoformat(), tx.description, tx.amount)


def dedupe(transactions: Iterable[NormalizedTransaction]) -> list[NormalizedTransaction]:
    """Keep the first occurrence per key, preserving input order.

    Idempotent: ``dedupe(dedupe(x)) == dedupe(x)``.
    """

    seen: set[TransactionKey] = set()
    unique: list[NormalizedTransaction] = []
    for tx in transactions:
        key = transaction_key(tx)
        if key in seen:
            _logger.debug("Duplicate transaction dropped: %s", key)
            continue
        seen.add(key)
        unique.append(tx)
    return unique


__all__ = ["transaction_key", "dedupe"]
