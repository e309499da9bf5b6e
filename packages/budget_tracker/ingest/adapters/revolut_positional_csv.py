"""Adapter for Revolut statement exports read by column position.

The first line is a header and must have exactly ten columns. Data rows are
read positionally, whatever the header names say:

``0 Type, 1 Product, 2 Started Date, 3 Completed Date, 4 Description,
5 Amount, 6 Fee, 7 Currency, 8 State, 9 Balance``

Rows with fewer than ten fields are skipped. Dates use the day-first
``DD/MM/YYYY HH:MM`` layout.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator
from datetime import datetime

from ...models import RawStatementRow

EXPECTED_COLUMNS = 10

_DATE_FORMATS: tuple[str, ...] = ("%d/%m/%Y %H:%M", "%d/%m/%Y %H:%M:%S", "%d/%m/%Y")


def to_raw_rows(text: str) -> Iterator[RawStatementRow]:
    """Yield raw rows from positional CSV ``text`` in input order.

    Raises ``csv.Error`` when the header does not have ten columns.
    """

    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header is None:
        raise csv.Error("Revolut CSV appears to be empty")
    if len(header) != EXPECTED_COLUMNS:
        raise csv.Error(
            f"Invalid CSV format: Expected {EXPECTED_COLUMNS} columns but found {len(header)}"
        )

    line_no = 0
    for fields in reader:
        if not any(f.strip() for f in fields):
            continue
        line_no += 1
        if len(fields) < EXPECTED_COLUMNS:
            continue
        cells = [f.strip() for f in fields[:EXPECTED_COLUMNS]]
        yield RawStatementRow(line_no, *cells)


def parse_completed_date(value: str) -> datetime:
    """Parse a day-first completion timestamp; raises ``ValueError``."""

    s = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValueError(f"invalid DD/MM/YYYY date: {value!r}")
