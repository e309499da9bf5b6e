"""Adapter for Revolut statement exports read by column name.

CSV header (column names; order and extra columns do not matter):
Type, Product, Started Date, Completed Date, Description, Amount, Fee,
Currency, State, Balance

Required columns: ``REQUIRED_COLUMNS``. ``Started Date``, ``Fee`` and
``Balance`` are optional and default to empty strings.

Dates are ISO-like: ``YYYY-MM-DD HH:MM:SS`` (``T`` separator and date-only
values are accepted too).
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator
from datetime import datetime

from ...models import RawStatementRow

REQUIRED_COLUMNS: set[str] = {
    "Type",
    "Product",
    "Completed Date",
    "Description",
    "Amount",
    "Currency",
    "State",
}


def _cell(row: dict[str, str | None], key: str) -> str:
    value = row.get(key)
    return value.strip() if isinstance(value, str) else ""


def to_raw_rows(text: str) -> Iterator[RawStatementRow]:
    """Yield raw rows from header-driven CSV ``text`` in input order.

    Blank lines are skipped. ``line_no`` is the 1-based data row number.
    Raises ``csv.Error`` when required columns are missing.
    """

    reader = csv.DictReader(io.StringIO(text))
    headers = [h.strip() for h in (reader.fieldnames or [])]
    if not headers:
        raise csv.Error("Revolut CSV appears to have no header row")
    reader.fieldnames = headers
    missing = sorted(col for col in REQUIRED_COLUMNS if col not in headers)
    if missing:
        raise csv.Error("Revolut CSV header mismatch. Missing columns: " + ", ".join(missing))

    line_no = 0
    for row in reader:
        if all((v or "").strip() == "" for v in row.values() if isinstance(v, str)):
            continue
        line_no += 1
        yield RawStatementRow(
            line_no=line_no,
            type=_cell(row, "Type"),
            product=_cell(row, "Product"),
            started_date=_cell(row, "Started Date"),
            completed_date=_cell(row, "Completed Date"),
            description=_cell(row, "Description"),
            amount=_cell(row, "Amount"),
            fee=_cell(row, "Fee"),
            currency=_cell(row, "Currency"),
            state=_cell(row, "State"),
            balance=_cell(row, "Balance"),
        )


def parse_completed_date(value: str) -> datetime:
    """Parse an ISO-like completion timestamp; raises ``ValueError``."""

    return datetime.fromisoformat(value.strip())
