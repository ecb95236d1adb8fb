"""Ledger-driven portfolio tracking.

Every number is derived from the transaction ledger plus a small set of
side-inputs (current prices, target allocations, goals).
"""

__version__ = "0.1.0"
