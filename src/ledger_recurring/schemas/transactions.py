"""
Transaction schemas consumed by the detector.

TransactionRecord is owned by the ledger collaborator and is read-only here.
NormalizedEvent is engine-owned and ephemeral: it exists only for the
duration of one detection call and is never persisted.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class CounterpartySource(str, Enum):
    """Where a counterparty label was derived from."""

    MERCHANT = "merchant"
    DESCRIPTION = "description"


@dataclass(frozen=True)
class TransactionRecord:
    """A validated ledger transaction."""

    account_key: str
    posted_at: date
    amount: Decimal  # signed, currency-scaled
    currency: str  # ISO 4217 code
    description: str
    merchant: str | None = None

    @property
    def sign(self) -> int:
        """+1 for credits, -1 for debits."""
        return -1 if self.amount < 0 else 1

    @property
    def sign_key(self) -> str:
        """Grouping token for the amount direction."""
        return "debit" if self.amount < 0 else "credit"


@dataclass(frozen=True)
class NormalizedEvent:
    """A transaction annotated with its resolved counterparty."""

    record: TransactionRecord
    counterparty: str
    counterparty_source: CounterpartySource
    sign: int

    @property
    def account_key(self) -> str:
        return self.record.account_key

    @property
    def posted_at(self) -> date:
        return self.record.posted_at

    @property
    def amount(self) -> Decimal:
        return self.record.amount

    @property
    def abs_amount(self) -> Decimal:
        return abs(self.record.amount)

    @property
    def currency(self) -> str:
        return self.record.currency

    @property
    def description(self) -> str:
        return self.record.description

    @property
    def group_key(self) -> str:
        """Compound identity: account | currency | sign | counterparty."""
        return "|".join(
            (
                self.record.account_key,
                self.record.currency,
                self.record.sign_key,
                self.counterparty,
            )
        )
