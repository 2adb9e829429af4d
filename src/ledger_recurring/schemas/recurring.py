"""
Recurring detection output schemas.

Numeric evidence is carried as Decimal and serialized as fixed-precision
decimal strings so that JSON output is byte-stable across runs:
- amounts: 2 places
- cadence_fit, amount_fit, score: 4 places
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .dates import CadenceKind, format_iso_date
from .transactions import CounterpartySource

AMOUNT_QUANTUM = Decimal("0.01")
METRIC_QUANTUM = Decimal("0.0001")


def quantize_amount(value: Decimal) -> Decimal:
    """Round a currency amount to 2 places."""
    return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_metric(value: Decimal) -> Decimal:
    """Round a fit or score to 4 places."""
    return value.quantize(METRIC_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RecurringPattern:
    """One detected recurring series (winning cadence for one group)."""

    group_key: str
    account_key: str
    counterparty: str
    counterparty_source: CounterpartySource
    cadence: CadenceKind
    typical_amount: Decimal
    currency: str
    first_seen_at: date
    last_seen_at: date
    next_expected_at: date | None
    occurrence_count: int
    cadence_fit: Decimal
    amount_fit: Decimal
    score: Decimal
    amount_min: Decimal
    amount_max: Decimal
    sample_description: str
    quality_flags: tuple[str, ...] = ()
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "group_key": self.group_key,
            "account_key": self.account_key,
            "counterparty": self.counterparty,
            "counterparty_source": self.counterparty_source.value,
            "cadence": self.cadence.value,
            "typical_amount": f"{quantize_amount(self.typical_amount)}",
            "currency": self.currency,
            "first_seen_at": format_iso_date(self.first_seen_at),
            "last_seen_at": format_iso_date(self.last_seen_at),
            "next_expected_at": (
                format_iso_date(self.next_expected_at) if self.next_expected_at else None
            ),
            "occurrence_count": self.occurrence_count,
            "cadence_fit": f"{quantize_metric(self.cadence_fit)}",
            "amount_fit": f"{quantize_metric(self.amount_fit)}",
            "score": f"{quantize_metric(self.score)}",
            "amount_min": f"{quantize_amount(self.amount_min)}",
            "amount_max": f"{quantize_amount(self.amount_max)}",
            "sample_description": self.sample_description,
            "quality_flags": list(self.quality_flags),
            "is_active": self.is_active,
        }


@dataclass
class RecurringResult:
    """Full result of one detection call."""

    policy_version: str
    patterns: list[RecurringPattern] = field(default_factory=list)
    date_from: date | None = None
    date_to: date | None = None
    # Earliest/latest posted_at in the whole ledger (coverage hint)
    data_range_hint: dict[str, str | None] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "policy_version": self.policy_version,
            "from": format_iso_date(self.date_from) if self.date_from else None,
            "to": format_iso_date(self.date_to) if self.date_to else None,
            "patterns": [p.to_dict() for p in self.patterns],
        }
        if self.data_range_hint is not None:
            data["data_range_hint"] = dict(self.data_range_hint)
        return data
