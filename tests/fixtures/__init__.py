"""
Transaction builders for detector tests.

Compact string inputs keep scenario tables readable:
    make_record("2026-01-14", "-54.99", merchant="NETFLIX")
"""

from datetime import date
from decimal import Decimal

from ledger_recurring.schemas import TransactionRecord


def make_record(
    posted_at: str,
    amount: str,
    merchant: str | None = "NETFLIX",
    description: str = "NETFLIX.COM",
    account_key: str = "acct_checking",
    currency: str = "USD",
) -> TransactionRecord:
    """Build a TransactionRecord from compact string inputs."""
    return TransactionRecord(
        account_key=account_key,
        posted_at=date.fromisoformat(posted_at),
        amount=Decimal(amount),
        currency=currency,
        description=description,
        merchant=merchant,
    )


def monthly_series(
    day: int = 14,
    months: range = range(1, 7),
    year: int = 2026,
    amount: str = "-54.99",
    **kwargs,
) -> list[TransactionRecord]:
    """One charge per month on a fixed day."""
    return [make_record(f"{year}-{month:02d}-{day:02d}", amount, **kwargs) for month in months]


def dated_series(dates: list[str], amount: str = "-10.00", **kwargs) -> list[TransactionRecord]:
    """One record per date with a shared amount and counterparty."""
    return [make_record(posted, amount, **kwargs) for posted in dates]
