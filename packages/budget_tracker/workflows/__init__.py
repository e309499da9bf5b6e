"""High-level flows composing import, approval, and reconciliation."""
