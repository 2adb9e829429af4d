"""Services for querying the ledger, running detection and refreshing the cache."""

from ledger_recurring.services.recurring import load_cached_recurring, run_recurring
from ledger_recurring.services.refresh import RefreshSummary, refresh_recurring_cache
from ledger_recurring.services.transaction_query import (
    TransactionLedger,
    TransactionQueryAdapter,
)

__all__ = [
    "RefreshSummary",
    "TransactionLedger",
    "TransactionQueryAdapter",
    "load_cached_recurring",
    "refresh_recurring_cache",
    "run_recurring",
]
