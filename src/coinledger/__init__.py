"""Crypto portfolio ledger with weighted-average reconciliation and price sync."""

__version__ = "0.1.0"
