"""Test fixtures and utilities."""

from pathlib import Path

import pytest

from fixtures import dated_series, make_record, monthly_series
from ledger_recurring.schemas import TransactionRecord


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_ledger.db"


@pytest.fixture
def netflix_series() -> list[TransactionRecord]:
    """Six monthly 54.99 USD charges on the 14th, Jan-Jun 2026."""
    return monthly_series()


@pytest.fixture
def mixed_ledger() -> list[TransactionRecord]:
    """A ledger with several recurring series and some noise."""
    records = monthly_series()
    # Biweekly payroll credit
    records += dated_series(
        ["2026-01-02", "2026-01-16", "2026-01-30", "2026-02-13", "2026-02-27", "2026-03-13"],
        amount="2500.00",
        merchant="ACME CORP PAYROLL",
        description="ACME CORP PAYROLL",
    )
    # Weekly gym fee without merchant (description fallback)
    records += dated_series(
        ["2026-05-04", "2026-05-11", "2026-05-18", "2026-05-25", "2026-06-01"],
        amount="-12.00",
        merchant=None,
        description="POS DEBIT 4411 IRON TEMPLE GYM",
    )
    # Noise
    records += [
        make_record("2026-02-03", "-4.50", merchant="COFFEE SHOP", description="COFFEE"),
        make_record("2026-02-20", "-81.12", merchant="HARDWARE", description="HARDWARE"),
        make_record("2026-03-09", "-4.75", merchant="COFFEE SHOP", description="COFFEE"),
    ]
    return records
