"""Pytest configuration for test isolation.

Each test gets its own failed-imports log path under ``tmp_path`` so nothing
is written into the working tree, and cached SQLAlchemy engines are disposed
after every test so per-test SQLite files are released.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from tracker_db.client import dispose_engines

from tests.helpers.db import bootstrap_sqlite_db

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point file outputs at the test's temporary directory; clear user config."""

    monkeypatch.setenv(
        "BUDGET_TRACKER_FAILED_IMPORTS_LOG", os.fspath(tmp_path / "failed_imports.jsonl")
    )
    for name in (
        "DATABASE_URL",
        "BUDGET_TRACKER_USER_ID",
        "BUDGET_TRACKER_MAX_FILE_BYTES",
        "BUDGET_TRACKER_MAX_TRANSACTIONS",
        "BUDGET_TRACKER_IMPORT_VALID_UNTIL",
        "BUDGET_TRACKER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    dispose_engines()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "budget.sqlite3")


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR
