"""
SSOT (Single Source of Truth) schemas for the detector.

These canonical schemas are the ONLY models used across all modules.
No duplicated "near-same" models allowed.
"""

from .dates import (
    CadenceKind,
    DateRange,
    add_months_clamped,
    build_date_range,
    days_in_month,
    format_iso_date,
    is_leap_year,
    parse_iso_date_strict,
    parse_transaction_date,
)
from .recurring import (
    RecurringPattern,
    RecurringResult,
    quantize_amount,
    quantize_metric,
)
from .transactions import (
    CounterpartySource,
    NormalizedEvent,
    TransactionRecord,
)

__all__ = [
    # Dates
    "CadenceKind",
    "DateRange",
    "add_months_clamped",
    "build_date_range",
    "days_in_month",
    "format_iso_date",
    "is_leap_year",
    "parse_iso_date_strict",
    "parse_transaction_date",
    # Recurring output
    "RecurringPattern",
    "RecurringResult",
    "quantize_amount",
    "quantize_metric",
    # Transactions
    "CounterpartySource",
    "NormalizedEvent",
    "TransactionRecord",
]
