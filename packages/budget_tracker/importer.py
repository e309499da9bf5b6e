"""Statement import: bank CSV bytes → classified, deduplicated transactions.

Pipeline (per call):

1) Reject oversize files before decoding.
2) Load raw rows with the chosen (or detected) layout; reject files with more
   rows than the configured ceiling.
3) Admission filter, in this order: state ``COMPLETED``; non-empty completion
   date; amount is a valid negative number; description does not mention a
   credit card repayment.
4) Per admitted row: parse the completion date (row error on failure), skip
   rows outside the target month (half-open window, not an error), reject rows
   after the validity cutoff (row error).
5) Classify, apply the amount transform, tag the description with the file
   name, then deduplicate.

Row errors never abort the import. When any occurred, the raw batch is handed
to the injected :class:`~budget_tracker.ingest.failures.FailedImportSink`.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from .categories import UNCATEGORIZED, classify, normalize_description
from .duplicates import dedupe
from .ingest.failures import FailedImportSink
from .ingest.utils import StatementFormat, load_statement_rows
from .logging_setup import get_logger
from .models import FailedImport, ImportResult, NormalizedTransaction, RawStatementRow
from .scoping import in_import_window
from .settings import ImportLimits

_logger = get_logger("budget_tracker.importer")

COMPLETED_STATE = "COMPLETED"
_TRANSFER_MARKER = "credit card repayment"


def _to_decimal(raw: str) -> Decimal | None:
    try:
        d = Decimal(raw.strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def admit_rows(rows: Iterable[RawStatementRow]) -> list[tuple[RawStatementRow, Decimal]]:
    """Apply the admission filter and return surviving rows with parsed amounts.

    Later checks assume earlier ones passed; keep the order.
    """

    admitted: list[tuple[RawStatementRow, Decimal]] = []
    for row in rows:
        if row.state != COMPLETED_STATE:
            continue
        if not row.completed_date.strip():
            continue
        amount = _to_decimal(row.amount)
        if amount is None or amount >= 0:
            continue
        if _TRANSFER_MARKER in row.description.lower():
            continue
        admitted.append((row, amount))
    return admitted


def _format_megabytes(n_bytes: int) -> str:
    return f"{n_bytes / (1024 * 1024):g}MB"


def parse_statement(
    data: bytes,
    target_month: date,
    *,
    filename: str,
    statement_format: StatementFormat = StatementFormat.AUTO,
    limits: ImportLimits | None = None,
    failure_sink: FailedImportSink | None = None,
) -> ImportResult:
    """Parse a statement export for ``target_month``.

    Parameters
    ----------
    data:
        Raw file bytes (UTF-8, optional BOM).
    target_month:
        Any date inside the month to import.
    filename:
        Originating file name; appended to every description for provenance.
    statement_format:
        Force a layout or detect it (default).
    limits:
        Size/row/date ceilings; defaults to :class:`ImportLimits` defaults.
    failure_sink:
        Receives the raw batch when any row produced an error.
    """

    limits = limits or ImportLimits()

    if len(data) > limits.max_file_bytes:
        return ImportResult(
            errors=[f"File size exceeds {_format_megabytes(limits.max_file_bytes)} limit"]
        )

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return ImportResult(errors=["File is not valid UTF-8 text"])

    try:
        rows, parse_date = load_statement_rows(text, statement_format)
    except csv.Error as e:
        return ImportResult(errors=[str(e)])

    if len(rows) > limits.max_transactions:
        return ImportResult(
            errors=[f"Transaction count exceeds {limits.max_transactions} limit"]
        )

    result = ImportResult()
    unmapped: dict[str, None] = {}
    collected: list[NormalizedTransaction] = []
    skipped_out_of_month = 0

    for row, signed_amount in admit_rows(rows):
        label = f"Row {row.line_no}"
        try:
            completed_at = parse_date(row.completed_date)
        except ValueError:
            result.errors.append(f"{label}: Invalid date format")
            continue

        if not in_import_window(completed_at, target_month):
            skipped_out_of_month += 1
            continue

        if completed_at.date() > limits.valid_until:
            result.errors.append(
                f"{label}: Transaction date after {limits.valid_until.isoformat()}"
            )
            continue

        description = normalize_description(row.description)
        classification = classify(description)
        if classification.category == UNCATEGORIZED:
            unmapped.setdefault(description, None)

        adjustment = classification.apply(signed_amount)
        if adjustment.warning:
            result.warnings.append(f"{description}: {adjustment.warning}")
            _logger.info("%s adjusted %s -> %s", label, signed_amount, adjustment.amount)

        collected.append(
            NormalizedTransaction(
                date=completed_at.date(),
                description=f"{description} (from file: {filename})",
                amount=adjustment.amount,
                category=classification.category,
                original_category=row.type,
                currency=row.currency or "EUR",
            )
        )

    result.transactions = dedupe(collected)
    result.unmapped_categories = list(unmapped)

    _logger.info(
        "Imported %s: %d transaction(s), %d duplicate(s), %d outside %s, %d error(s)",
        filename,
        len(result.transactions),
        len(collected) - len(result.transactions),
        skipped_out_of_month,
        target_month.strftime("%Y-%m"),
        len(result.errors),
    )

    if result.errors and failure_sink is not None:
        failure_sink.record(
            FailedImport(
                timestamp=datetime.now(UTC),
                filename=filename,
                errors=list(result.errors),
                raw_rows=[r.as_dict() for r in rows],
            )
        )

    return result


def parse_statement_file(
    path: str | Path,
    target_month: date,
    *,
    statement_format: StatementFormat = StatementFormat.AUTO,
    limits: ImportLimits | None = None,
    failure_sink: FailedImportSink | None = None,
) -> ImportResult:
    """Read ``path`` and delegate to :func:`parse_statement`.

    ``OSError`` from reading the file propagates to the caller.
    """

    p = Path(path)
    limits = limits or ImportLimits()
    # Check the size on disk first so oversize files are never read into memory.
    if p.stat().st_size > limits.max_file_bytes:
        return ImportResult(
            errors=[f"File size exceeds {_format_megabytes(limits.max_file_bytes)} limit"]
        )
    return parse_statement(
        p.read_bytes(),
        target_month,
        filename=p.name,
        statement_format=statement_format,
        limits=limits,
        failure_sink=failure_sink,
    )


__all__ = [
    "COMPLETED_STATE",
    "admit_rows",
    "parse_statement",
    "parse_statement_file",
]
