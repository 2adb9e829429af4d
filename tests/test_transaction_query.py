"""Tests for the transaction query adapter."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from fixtures import make_record
from ledger_recurring.errors import LedgerLockedError
from ledger_recurring.schemas import DateRange
from ledger_recurring.services import TransactionQueryAdapter


class TestTransactionQueryAdapter:
    """Window pass-through and record tidying."""

    def test_window_passed_once(self):
        """The ledger receives the window bounds exactly once."""
        ledger = MagicMock()
        ledger.fetch_transactions.return_value = []

        TransactionQueryAdapter(ledger).fetch(DateRange(date(2026, 1, 1), date(2026, 3, 31)))

        ledger.fetch_transactions.assert_called_once_with(date(2026, 1, 1), date(2026, 3, 31))

    def test_open_window(self):
        ledger = MagicMock()
        ledger.fetch_transactions.return_value = []

        TransactionQueryAdapter(ledger).fetch()

        ledger.fetch_transactions.assert_called_once_with(None, None)

    def test_records_are_tidied(self):
        """Whitespace is trimmed, currency upper-cased, blank merchants dropped."""
        ledger = MagicMock()
        ledger.fetch_transactions.return_value = [
            make_record(
                "2026-01-14",
                "-54.99",
                merchant="   ",
                description="  NETFLIX.COM  ",
                account_key=" acct_checking ",
                currency="usd ",
            )
        ]

        (record,) = TransactionQueryAdapter(ledger).fetch()

        assert record.merchant is None
        assert record.description == "NETFLIX.COM"
        assert record.account_key == "acct_checking"
        assert record.currency == "USD"
        assert record.amount == Decimal("-54.99")

    def test_zero_amounts_dropped(self):
        ledger = MagicMock()
        ledger.fetch_transactions.return_value = [
            make_record("2026-01-14", "0.00"),
            make_record("2026-02-14", "-54.99"),
        ]

        records = TransactionQueryAdapter(ledger).fetch()

        assert [r.posted_at for r in records] == [date(2026, 2, 14)]

    def test_ledger_errors_propagate(self):
        """Ledger failures are not caught or retried."""
        ledger = MagicMock()
        ledger.fetch_transactions.side_effect = LedgerLockedError("ledger.db")

        with pytest.raises(LedgerLockedError):
            TransactionQueryAdapter(ledger).fetch()
        assert ledger.fetch_transactions.call_count == 1
