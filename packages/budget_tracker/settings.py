"""Runtime configuration read from the environment.

The CLI loads a local ``.env`` (``python-dotenv``) before calling
:func:`load_settings`; library code receives explicit values and never reads
the environment on its own except through this module.

Variables
---------
- ``DATABASE_URL``: SQLAlchemy URL of the persistent store.
- ``BUDGET_TRACKER_USER_ID``: default user id for CLI commands.
- ``BUDGET_TRACKER_MAX_FILE_BYTES``: import file size ceiling (default 2 MiB).
- ``BUDGET_TRACKER_MAX_TRANSACTIONS``: import row ceiling (default 2000).
- ``BUDGET_TRACKER_IMPORT_VALID_UNTIL``: last accepted transaction date
  (``YYYY-MM-DD``, default ``2025-12-31``).
- ``BUDGET_TRACKER_LOG_LEVEL``: package log level name (default ``INFO``).
- ``BUDGET_TRACKER_FAILED_IMPORTS_LOG``: JSON-lines retry log path (default
  ``./.cache/failed_imports.jsonl``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_FILE_BYTES = 2 * 1024 * 1024
DEFAULT_MAX_TRANSACTIONS = 2000
DEFAULT_VALID_UNTIL = date(2025, 12, 31)
DEFAULT_FAILED_IMPORTS_LOG = Path(".cache") / "failed_imports.jsonl"
LOG_LEVEL_ENV = "BUDGET_TRACKER_LOG_LEVEL"


class ImportLimits(BaseModel):
    """Ceilings applied by the statement importer before and during parsing."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_file_bytes: int = Field(default=DEFAULT_MAX_FILE_BYTES, gt=0)
    max_transactions: int = Field(default=DEFAULT_MAX_TRANSACTIONS, gt=0)
    valid_until: date = DEFAULT_VALID_UNTIL


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str | None
    user_id: str | None
    limits: ImportLimits
    failed_imports_log: Path
    log_level: str = "INFO"


def env_log_level() -> str:
    return (os.getenv(LOG_LEVEL_ENV) or "INFO").strip().upper()


def load_settings() -> Settings:
    """Build :class:`Settings` from the current environment.

    Invalid numeric or date values raise ``pydantic.ValidationError`` here
    rather than surfacing later in the middle of an import.
    """

    raw_limits: dict[str, str] = {}
    for env_name, field in (
        ("BUDGET_TRACKER_MAX_FILE_BYTES", "max_file_bytes"),
        ("BUDGET_TRACKER_MAX_TRANSACTIONS", "max_transactions"),
        ("BUDGET_TRACKER_IMPORT_VALID_UNTIL", "valid_until"),
    ):
        value = os.getenv(env_name)
        if value:
            raw_limits[field] = value.strip()

    log_path = os.getenv("BUDGET_TRACKER_FAILED_IMPORTS_LOG")
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        user_id=os.getenv("BUDGET_TRACKER_USER_ID") or None,
        limits=ImportLimits.model_validate(raw_limits),
        failed_imports_log=Path(log_path) if log_path else DEFAULT_FAILED_IMPORTS_LOG,
        log_level=env_log_level(),
    )


__all__ = [
    "ImportLimits",
    "Settings",
    "env_log_level",
    "load_settings",
]
