"""Statement ingestion: format detection, adapters, and the failed-import log."""
