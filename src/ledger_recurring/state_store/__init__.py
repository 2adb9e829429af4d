"""
Ledger Store (SQLite-based).

Lightweight persistent DB for:
- Validated transactions consumed by the detector
- The optional recurring cache

The cache never changes classification results; it only stores them.
"""

from .sqlite_store import RECURRING_CACHE_NAME, LedgerStore, map_sqlite_error

__all__ = [
    "RECURRING_CACHE_NAME",
    "LedgerStore",
    "map_sqlite_error",
]
