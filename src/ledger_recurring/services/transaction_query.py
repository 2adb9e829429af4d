"""Transaction query adapter.

Pulls records for a date window from the ledger collaborator. The window is
handed to the ledger exactly once; nothing downstream filters by date again.
Ledger failures propagate unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Protocol

from ledger_recurring.schemas.dates import DateRange
from ledger_recurring.schemas.transactions import TransactionRecord

logger = logging.getLogger(__name__)


class TransactionLedger(Protocol):
    """Query capability the ledger collaborator must provide."""

    def fetch_transactions(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[TransactionRecord]: ...


class TransactionQueryAdapter:
    """Fetches and tidies ledger records for the detector."""

    def __init__(self, ledger: TransactionLedger) -> None:
        """Initialize the adapter.

        Args:
            ledger: Ledger collaborator providing fetch_transactions().
        """
        self.ledger = ledger

    def fetch(self, date_range: DateRange | None = None) -> list[TransactionRecord]:
        """Fetch records for the window.

        Text fields are trimmed, currency is upper-cased, blank merchants
        become None, and zero amounts are dropped.

        Args:
            date_range: Validated window (open ends allowed).

        Returns:
            Records ready for detection.
        """
        date_range = date_range or DateRange()
        raw = self.ledger.fetch_transactions(date_range.start, date_range.end)

        records: list[TransactionRecord] = []
        dropped = 0
        for record in raw:
            if record.amount == 0:
                dropped += 1
                continue
            records.append(self._tidy(record))

        logger.debug(
            "Fetched %d transaction(s) for window %s (%d zero-amount dropped)",
            len(records),
            date_range.to_dict(),
            dropped,
        )
        return records

    @staticmethod
    def _tidy(record: TransactionRecord) -> TransactionRecord:
        merchant = record.merchant.strip() if record.merchant else None
        return replace(
            record,
            account_key=record.account_key.strip(),
            currency=record.currency.strip().upper(),
            description=record.description.strip(),
            merchant=merchant or None,
        )
