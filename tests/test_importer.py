from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

from budget_tracker.importer import admit_rows, parse_statement, parse_statement_file
from budget_tracker.ingest.failures import InMemoryFailedImportLog, JsonlFailedImportLog
from budget_tracker.ingest.utils import StatementFormat, detect_format
from budget_tracker.models import RawStatementRow
from budget_tracker.settings import ImportLimits

MARCH = date(2024, 3, 1)

HEADER = "Type,Product,Started Date,Completed Date,Description,Amount,Fee,Currency,State,Balance\n"


def _csv(*rows: str) -> bytes:
    return (HEADER + "\n".join(rows) + "\n").encode("utf-8")


def _row(**overrides: str) -> RawStatementRow:
    base = dict(
        line_no=1,
        type="CARD_PAYMENT",
        product="Current",
        started_date="2024-03-05 11:00:00",
        completed_date="2024-03-05 12:00:00",
        description="TESCO",
        amount="-1.00",
        fee="0.00",
        currency="EUR",
        state="COMPLETED",
        balance="",
    )
    base.update(overrides)
    return RawStatementRow(**base)  # type: ignore[arg-type]


def test_three_row_statement_is_classified_and_signed() -> None:
    data = _csv(
        "CARD_PAYMENT,Current,2024-03-05 11:00:00,2024-03-05 12:00:00,TESCO DUBLIN,-45.20,0,EUR,COMPLETED,1",
        "CARD_PAYMENT,Current,2024-03-06 11:00:00,2024-03-06 12:00:00,UNKNOWN VENDOR XYZ,-10.00,0,EUR,COMPLETED,1",
        "CARD_PAYMENT,Current,2024-03-07 11:00:00,,Lidl,-20.00,0,EUR,PENDING,",
    )
    result = parse_statement(data, MARCH, filename="march.csv")

    assert result.success
    assert [(t.category, t.amount) for t in result.transactions] == [
        ("Groceries", Decimal("45.20")),
        ("Uncategorized", Decimal("10.00")),
    ]
    assert result.transactions[0].description == "tesco dublin (from file: march.csv)"
    assert result.transactions[0].original_category == "CARD_PAYMENT"
    assert result.unmapped_categories == ["unknown vendor xyz"]


def test_fixture_statement_end_to_end(data_dir: Path) -> None:
    result = parse_statement_file(data_dir / "statement_2024_03.csv", MARCH)

    assert result.errors == []
    # pending, positive, card repayment, out-of-month and the duplicate are gone
    assert [(t.date, t.category, t.amount) for t in result.transactions] == [
        (date(2024, 3, 1), "Rent", Decimal("1000")),
        (date(2024, 3, 5), "Groceries", Decimal("45.20")),
        (date(2024, 3, 6), "Uncategorized", Decimal("10.00")),
        (date(2024, 3, 7), "Takeaway Coffee", Decimal("4.50")),
    ]
    assert result.warnings == [
        "to trading places: Rent payment adjusted from 2200 to 1000 (roommate portion excluded)"
    ]
    assert all(t.amount > 0 for t in result.transactions)
    assert all(t.description.endswith("(from file: statement_2024_03.csv)") for t in result.transactions)


def test_admission_filter_order_and_rules() -> None:
    rows = [
        _row(line_no=1),
        _row(line_no=2, state="PENDING"),
        _row(line_no=3, completed_date=""),
        _row(line_no=4, amount="12.00"),
        _row(line_no=5, amount="0"),
        _row(line_no=6, amount="abc"),
        _row(line_no=7, description="Credit Card Repayment March"),
    ]
    assert [r.line_no for r, _ in admit_rows(rows)] == [1]


def test_invalid_date_is_a_row_error_and_other_rows_survive(data_dir: Path) -> None:
    sink = InMemoryFailedImportLog()
    result = parse_statement_file(data_dir / "statement_bad_dates.csv", MARCH, failure_sink=sink)

    assert result.errors == ["Row 2: Invalid date format"]
    assert [t.category for t in result.transactions] == ["Groceries", "Home & Hardware"]
    assert len(sink.entries) == 1
    entry = sink.entries[0]
    assert entry.filename == "statement_bad_dates.csv"
    assert entry.errors == ["Row 2: Invalid date format"]
    assert len(entry.raw_rows) == 3


def test_rows_after_validity_cutoff_are_rejected(data_dir: Path) -> None:
    limits = ImportLimits(valid_until=date(2024, 3, 10))
    result = parse_statement_file(data_dir / "statement_bad_dates.csv", MARCH, limits=limits)

    assert "Row 3: Transaction date after 2024-03-10" in result.errors
    assert [t.category for t in result.transactions] == ["Groceries"]


def test_out_of_month_rows_are_skipped_before_the_cutoff_check() -> None:
    limits = ImportLimits(valid_until=date(2024, 3, 31))
    data = _csv(
        "CARD_PAYMENT,Current,2024-04-02 11:00:00,2024-04-02 12:00:00,TESCO,-5.00,0,EUR,COMPLETED,1",
    )
    result = parse_statement(data, MARCH, filename="x.csv", limits=limits)
    assert result.errors == []
    assert result.transactions == []


def test_oversize_file_is_rejected_without_parsing() -> None:
    sink = InMemoryFailedImportLog()
    limits = ImportLimits(max_file_bytes=64)
    result = parse_statement(b"x" * 65, MARCH, filename="big.csv", limits=limits, failure_sink=sink)
    assert len(result.errors) == 1
    assert result.errors[0].startswith("File size exceeds")
    assert result.transactions == []
    assert sink.entries == []


def test_default_size_limit_message() -> None:
    result = parse_statement(b"x" * (2 * 1024 * 1024 + 1), MARCH, filename="big.csv")
    assert result.errors == ["File size exceeds 2MB limit"]


def test_row_count_limit() -> None:
    limits = ImportLimits(max_transactions=2)
    row = "CARD_PAYMENT,Current,2024-03-05 11:00:00,2024-03-05 12:00:00,TESCO,-1.00,0,EUR,COMPLETED,1"
    result = parse_statement(_csv(row, row, row), MARCH, filename="x.csv", limits=limits)
    assert result.errors == ["Transaction count exceeds 2 limit"]
    assert result.transactions == []


def test_missing_columns_is_a_file_error() -> None:
    data = b"Type,Description,Amount\nCARD_PAYMENT,TESCO,-1\n"
    result = parse_statement(data, MARCH, filename="x.csv", statement_format=StatementFormat.HEADER)
    assert len(result.errors) == 1
    assert "Missing columns" in result.errors[0]


def test_positional_layout_requires_ten_columns() -> None:
    data = b"a,b,c\n1,2,3\n"
    result = parse_statement(data, MARCH, filename="x.csv")
    assert result.errors == ["Invalid CSV format: Expected 10 columns but found 3"]


def test_positional_statement_with_day_first_dates(data_dir: Path) -> None:
    path = data_dir / "statement_2024_03_positional.csv"
    assert detect_format(path.read_text(encoding="utf-8")) == StatementFormat.POSITIONAL

    result = parse_statement_file(path, MARCH)
    assert result.errors == []
    assert [(t.date, t.category, t.amount) for t in result.transactions] == [
        (date(2024, 3, 5), "Groceries", Decimal("45.20")),
        (date(2024, 3, 12), "Delivery & Takeaway", Decimal("23.40")),
    ]


def test_iso_statement_detected_as_header_layout(data_dir: Path) -> None:
    text = (data_dir / "statement_2024_03.csv").read_text(encoding="utf-8")
    assert detect_format(text) == StatementFormat.HEADER


def test_jsonl_failed_import_log_round_trip(tmp_path: Path, data_dir: Path) -> None:
    log = JsonlFailedImportLog(tmp_path / "nested" / "failed.jsonl")
    parse_statement_file(data_dir / "statement_bad_dates.csv", MARCH, failure_sink=log)
    parse_statement_file(data_dir / "statement_bad_dates.csv", MARCH, failure_sink=log)

    entries = log.read_entries()
    assert len(entries) == 2
    assert entries[0].errors == ["Row 2: Invalid date format"]
    assert entries[0].raw_rows[1]["Completed Date"] == "yesterday"


def test_non_utf8_bytes_are_a_file_error() -> None:
    result = parse_statement(b"\xff\xfe\x00bad", MARCH, filename="x.csv")
    assert result.errors == ["File is not valid UTF-8 text"]
