from __future__ import annotations

import io
import logging
from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError

from budget_tracker.logging_setup import configure_logging, get_logger, parse_level
from budget_tracker.settings import DEFAULT_MAX_FILE_BYTES, ImportLimits, load_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BUDGET_TRACKER_FAILED_IMPORTS_LOG")
    s = load_settings()
    assert s.database_url is None
    assert s.limits == ImportLimits()
    assert s.limits.max_file_bytes == DEFAULT_MAX_FILE_BYTES
    assert s.limits.valid_until == date(2025, 12, 31)
    assert s.failed_imports_log == Path(".cache") / "failed_imports.jsonl"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///x.db")
    monkeypatch.setenv("BUDGET_TRACKER_USER_ID", "u9")
    monkeypatch.setenv("BUDGET_TRACKER_MAX_TRANSACTIONS", "50")
    monkeypatch.setenv("BUDGET_TRACKER_IMPORT_VALID_UNTIL", "2026-06-30")
    s = load_settings()
    assert s.database_url == "sqlite+pysqlite:///x.db"
    assert s.user_id == "u9"
    assert s.limits.max_transactions == 50
    assert s.limits.valid_until == date(2026, 6, 30)


def test_bad_limit_fails_at_load_time(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUDGET_TRACKER_MAX_FILE_BYTES", "-1")
    with pytest.raises(ValidationError):
        load_settings()


def test_library_loggers_are_silent_until_configured() -> None:
    log = get_logger("budget_tracker.something")
    assert log.name == "budget_tracker.something"
    assert logging.getLogger("budget_tracker").handlers


def test_log_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    assert load_settings().log_level == "INFO"
    monkeypatch.setenv("BUDGET_TRACKER_LOG_LEVEL", " debug ")
    assert load_settings().log_level == "DEBUG"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        ("15", 15),
        ("loud", logging.INFO),
        (None, logging.INFO),
    ],
)
def test_parse_level(raw: str | None, expected: int) -> None:
    assert parse_level(raw) == expected


def test_reconfiguring_replaces_the_handler() -> None:
    pkg = logging.getLogger("budget_tracker")
    first = configure_logging("INFO", stream=io.StringIO())
    second_stream = io.StringIO()
    second = configure_logging("DEBUG", stream=second_stream)

    assert first not in pkg.handlers
    assert [h for h in pkg.handlers if isinstance(h, logging.StreamHandler)] == [second]
    get_logger("budget_tracker.approvals").debug("Undid approval %d/%d", 3, 2024)
    assert "DEBUG   budget_tracker.approvals: Undid approval 3/2024" in second_stream.getvalue()
