"""Statement adapters: bank CSV text → :class:`~budget_tracker.models.RawStatementRow`."""
