"""Ingest utilities: statement format detection and row loading.

Two Revolut export layouts are supported (see the adapters): a header-driven
one with ISO-like dates and a positional one with day-first dates. Callers may
force a layout or let :func:`detect_format` choose.

Detection strategy (``StatementFormat.AUTO``):
- When the header carries every required named column, sniff the first
  non-empty ``Completed Date``; a day-first ``DD/MM/YYYY`` value selects the
  positional layout, anything else the header-driven one.
- Otherwise fall back to the positional layout, which validates the column
  count itself.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Callable
from datetime import datetime
from enum import StrEnum

from ..models import RawStatementRow
from .adapters import revolut_header_csv, revolut_positional_csv

_DAY_FIRST_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}")


class StatementFormat(StrEnum):
    AUTO = "auto"
    HEADER = "header"
    POSITIONAL = "positional"


def detect_format(text: str) -> StatementFormat:
    """Return the concrete layout of ``text`` (never ``AUTO``)."""

    reader = csv.DictReader(io.StringIO(text))
    headers = {h.strip() for h in (reader.fieldnames or [])}
    if not revolut_header_csv.REQUIRED_COLUMNS <= headers:
        return StatementFormat.POSITIONAL

    key = next(h for h in reader.fieldnames or [] if h.strip() == "Completed Date")
    for row in reader:
        value = (row.get(key) or "").strip()
        if value:
            if _DAY_FIRST_RE.match(value):
                return StatementFormat.POSITIONAL
            return StatementFormat.HEADER
    return StatementFormat.HEADER


def load_statement_rows(
    text: str, statement_format: StatementFormat = StatementFormat.AUTO
) -> tuple[list[RawStatementRow], Callable[[str], datetime]]:
    """Read every raw row of ``text`` and return it with the matching date parser.

    Raises ``csv.Error`` when the header does not fit the chosen layout.
    """

    fmt = detect_format(text) if statement_format == StatementFormat.AUTO else statement_format
    if fmt == StatementFormat.HEADER:
        return list(revolut_header_csv.to_raw_rows(text)), revolut_header_csv.parse_completed_date
    return (
        list(revolut_positional_csv.to_raw_rows(text)),
        revolut_positional_csv.parse_completed_date,
    )


__all__ = ["StatementFormat", "detect_format", "load_statement_rows"]
