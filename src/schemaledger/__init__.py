"""Ledger-tracked, transactional schema migration runner."""

__version__ = "0.1.0"
