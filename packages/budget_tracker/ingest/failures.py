"""Retry log for imports that produced row errors.

The importer receives a sink explicitly; nothing here is process-wide state.

- ``FailedImportSink``: the protocol the importer writes to.
- ``JsonlFailedImportLog``: appends one JSON object per failed import to a
  local file (parent directories are created on first write).
- ``InMemoryFailedImportLog``: collects entries in a list (tests, dry runs).
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ..logging_setup import get_logger
from ..models import FailedImport

_logger = get_logger("budget_tracker.ingest.failures")


class FailedImportSink(Protocol):
    def record(self, entry: FailedImport) -> None: ...


class JsonlFailedImportLog:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def record(self, entry: FailedImport) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(entry.model_dump_json())
            f.write("\n")
        _logger.info("Stored failed import of %s in %s", entry.filename, self.path)

    def read_entries(self) -> list[FailedImport]:
        """Read back every stored entry (oldest first)."""

        if not self.path.is_file():
            return []
        with self.path.open(encoding="utf-8") as f:
            return [FailedImport.model_validate_json(line) for line in f if line.strip()]


class InMemoryFailedImportLog:
    def __init__(self) -> None:
        self.entries: list[FailedImport] = []

    def record(self, entry: FailedImport) -> None:
        self.entries.append(entry)


__all__ = ["FailedImportSink", "JsonlFailedImportLog", "InMemoryFailedImportLog"]
