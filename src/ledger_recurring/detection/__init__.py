"""Recurring pattern detector: grouping, cadence/amount scoring, gating, output."""

from ledger_recurring.detection.engine import (
    AmountStats,
    CadenceCandidate,
    CandidateGroup,
    EvidenceMetrics,
    RecurringDetector,
    detect_recurring,
    pattern_sort_key,
)

__all__ = [
    "AmountStats",
    "CadenceCandidate",
    "CandidateGroup",
    "EvidenceMetrics",
    "RecurringDetector",
    "detect_recurring",
    "pattern_sort_key",
]
