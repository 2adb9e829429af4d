"""
Versioned policy table.

Holds every tunable detector constant. Thresholds are never hardcoded
inline in the detector.
"""

from .table import (
    DEFAULT_NOISE_TOKENS,
    FLAG_CADENCE_VARIANCE,
    FLAG_DESCRIPTION_FALLBACK,
    FLAG_HIGH_AMOUNT_VARIANCE,
    FLAG_SHORT_HISTORY,
    POLICY_REGISTRY,
    QUALITY_FLAG_ORDER,
    RECURRING_POLICY_V1,
    RECURRING_POLICY_VERSION,
    CadenceRule,
    RecurringPolicy,
    get_policy,
)

__all__ = [
    "DEFAULT_NOISE_TOKENS",
    "FLAG_CADENCE_VARIANCE",
    "FLAG_DESCRIPTION_FALLBACK",
    "FLAG_HIGH_AMOUNT_VARIANCE",
    "FLAG_SHORT_HISTORY",
    "POLICY_REGISTRY",
    "QUALITY_FLAG_ORDER",
    "RECURRING_POLICY_V1",
    "RECURRING_POLICY_VERSION",
    "CadenceRule",
    "RecurringPolicy",
    "get_policy",
]
