"""Pattern detector for recurring transaction series.

Pipeline for one call:
1. normalize: drop zero amounts, resolve counterparties, drop ineligible rows
2. group: partition by account | currency | sign | counterparty
3. score: for each cadence hypothesis, compute cadence fit, amount fit and
   the weighted composite score, then apply the policy gates
4. select: one winning cadence per group (total, deterministic ordering)
5. assemble: one RecurringPattern per winner, then the final sort

The detector is a pure function of (records, date range, policy). It holds
no state between calls; groups share nothing, so they may be scored on a
thread pool. The final sort is always re-applied after the fan-in.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_EVEN, Context, Decimal, localcontext
from typing import Iterable

from ..counterparty import resolve_counterparty
from ..policy import (
    FLAG_CADENCE_VARIANCE,
    FLAG_DESCRIPTION_FALLBACK,
    FLAG_HIGH_AMOUNT_VARIANCE,
    FLAG_SHORT_HISTORY,
    QUALITY_FLAG_ORDER,
    RECURRING_POLICY_VERSION,
    CadenceRule,
    RecurringPolicy,
    get_policy,
)
from ..schemas.dates import CadenceKind, DateRange
from ..schemas.recurring import RecurringPattern, RecurringResult
from ..schemas.transactions import CounterpartySource, NormalizedEvent, TransactionRecord

logger = logging.getLogger(__name__)

# Fixed arithmetic context so fits are identical on every thread
DETECTION_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)

ZERO = Decimal("0")
ONE = Decimal("1")
TWO = Decimal("2")


@dataclass
class CandidateGroup:
    """All events sharing one group key, ascending by date."""

    group_key: str
    account_key: str
    currency: str
    counterparty: str
    counterparty_source: CounterpartySource
    counterparty_quality: Decimal
    events: list[NormalizedEvent] = field(default_factory=list)

    @property
    def occurrence_count(self) -> int:
        return len(self.events)

    @property
    def intervals(self) -> list[int]:
        """Day gaps between consecutive occurrences."""
        return [
            (current.posted_at - previous.posted_at).days
            for previous, current in zip(self.events, self.events[1:])
        ]

    @property
    def first_seen_at(self) -> date:
        return self.events[0].posted_at

    @property
    def last_seen_at(self) -> date:
        return self.events[-1].posted_at


@dataclass(frozen=True)
class AmountStats:
    """Amount evidence for one group (independent of cadence)."""

    fit: Decimal
    median_abs_amount: Decimal
    tolerance: Decimal
    typical_amount: Decimal  # signed median
    amount_min: Decimal
    amount_max: Decimal


@dataclass(frozen=True)
class EvidenceMetrics:
    """Fit and score values for one (group, cadence) pair, all in [0, 1]."""

    cadence_fit: Decimal
    amount_fit: Decimal
    counterparty_quality: Decimal
    score: Decimal


@dataclass(frozen=True)
class CadenceCandidate:
    """A cadence hypothesis that cleared the gates for a group."""

    rule: CadenceRule
    metrics: EvidenceMetrics
    median_interval_error: Decimal
    occurrence_count: int

    @property
    def cadence(self) -> CadenceKind:
        return self.rule.cadence

    def sort_key(self) -> tuple:
        """Winner is the minimum: fit desc, error asc, count desc, priority desc."""
        return (
            -self.metrics.cadence_fit,
            self.median_interval_error,
            -self.occurrence_count,
            -self.rule.priority,
        )


def median(values: Iterable[Decimal]) -> Decimal:
    """Median of a non-empty sequence (mean of the middle pair when even)."""
    ordered = sorted(values)
    if not ordered:
        raise ValueError("median() of empty sequence")
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / TWO
    return ordered[mid]


def pattern_sort_key(pattern: RecurringPattern) -> tuple:
    """Final output ordering.

    next_expected_at ascending (None last), score descending, counterparty
    ascending, group_key ascending.
    """
    return (
        pattern.next_expected_at is None,
        pattern.next_expected_at or date.min,
        -pattern.score,
        pattern.counterparty,
        pattern.group_key,
    )


class RecurringDetector:
    """Deterministic recurring-series classifier.

    Each cadence hypothesis is tested per group:
    - weekly: 7 days ±1, at least 4 occurrences
    - biweekly: 14 days ±2, at least 4 occurrences
    - monthly: one calendar month (day clamped) ±3, at least 3 occurrences

    A hypothesis is emittable only when cadence_fit and score both clear the
    policy gates. All constants come from the RecurringPolicy.
    """

    def __init__(
        self,
        policy: RecurringPolicy | None = None,
        max_workers: int = 1,
    ) -> None:
        """Initialize the detector.

        Args:
            policy: Policy table to apply (defaults to the current version).
            max_workers: Thread pool size for per-group scoring. 1 runs inline.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.policy = policy or get_policy(RECURRING_POLICY_VERSION)
        self.max_workers = max_workers

    # Grouping

    def normalize(self, records: Iterable[TransactionRecord]) -> list[NormalizedEvent]:
        """Resolve counterparties, dropping zero amounts and ineligible rows."""
        events: list[NormalizedEvent] = []
        for record in records:
            if record.amount == 0:
                continue
            identity = resolve_counterparty(record.merchant, record.description, self.policy)
            if identity is None:
                continue
            events.append(
                NormalizedEvent(
                    record=record,
                    counterparty=identity.label,
                    counterparty_source=identity.source,
                    sign=record.sign,
                )
            )
        return events

    def group(self, events: Iterable[NormalizedEvent]) -> list[CandidateGroup]:
        """Partition events by group key; groups of one are dropped.

        Returns groups ordered by group key with events ascending by
        (date, amount, description).
        """
        groups: dict[str, CandidateGroup] = {}
        for event in events:
            key = event.group_key
            group = groups.get(key)
            if group is None:
                group = CandidateGroup(
                    group_key=key,
                    account_key=event.account_key,
                    currency=event.currency,
                    counterparty=event.counterparty,
                    counterparty_source=event.counterparty_source,
                    counterparty_quality=self.policy.counterparty_quality(
                        event.counterparty_source
                    ),
                )
                groups[key] = group
            group.events.append(event)

        result: list[CandidateGroup] = []
        for key in sorted(groups):
            group = groups[key]
            if group.occurrence_count < 2:
                continue
            group.events.sort(key=lambda e: (e.posted_at, e.amount, e.description))
            self._settle_source(group)
            result.append(group)
        return result

    def _settle_source(self, group: CandidateGroup) -> None:
        """Merchant-sourced if any event carries the label as a merchant.

        A label can come from a merchant field on some rows and from a
        description on others; the group source must not depend on input order.
        """
        if any(e.counterparty_source is CounterpartySource.MERCHANT for e in group.events):
            source = CounterpartySource.MERCHANT
        else:
            source = CounterpartySource.DESCRIPTION
        group.counterparty_source = source
        group.counterparty_quality = self.policy.counterparty_quality(source)

    # Detection

    def detect(
        self,
        records: Iterable[TransactionRecord],
        date_range: DateRange | None = None,
        as_of: date | None = None,
    ) -> RecurringResult:
        """Detect recurring patterns in already-fetched records.

        The records are assumed to be the result of the range query; the
        range is not applied again here. It only sets the activity boundary.

        Args:
            records: Transactions to classify.
            date_range: Requested window (its end is the activity boundary).
            as_of: Activity boundary for unbounded ranges (defaults to today).

        Returns:
            RecurringResult with patterns in their final deterministic order.
        """
        date_range = date_range or DateRange()
        boundary = date_range.end or as_of or date.today()

        events = self.normalize(records)
        groups = self.group(events)
        logger.debug(
            "Grouped %d eligible events into %d candidate groups",
            len(events),
            len(groups),
        )

        if self.max_workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                evaluated = list(pool.map(lambda g: self.evaluate_group(g, boundary), groups))
        else:
            evaluated = [self.evaluate_group(group, boundary) for group in groups]

        patterns = [pattern for pattern in evaluated if pattern is not None]
        patterns.sort(key=pattern_sort_key)

        logger.info(
            "Detected %d recurring pattern(s) from %d group(s) (policy %s)",
            len(patterns),
            len(groups),
            self.policy.version,
        )

        return RecurringResult(
            policy_version=self.policy.version,
            patterns=patterns,
            date_from=date_range.start,
            date_to=date_range.end,
        )

    def evaluate_group(self, group: CandidateGroup, boundary: date) -> RecurringPattern | None:
        """Score every cadence for one group and assemble the winner, if any."""
        with localcontext(DETECTION_CONTEXT):
            amount_stats = self.compute_amount_stats(group)

            candidates: list[CadenceCandidate] = []
            for rule in self.policy.cadence_rules:
                candidate = self.score_cadence(group, rule, amount_stats)
                if candidate is not None:
                    candidates.append(candidate)

            winner = self.select_winner(candidates)
            if winner is None:
                return None

            return self.assemble_pattern(group, winner, amount_stats, boundary)

    def score_cadence(
        self,
        group: CandidateGroup,
        rule: CadenceRule,
        amount_stats: AmountStats,
    ) -> CadenceCandidate | None:
        """Test one cadence hypothesis against a group.

        Returns:
            CadenceCandidate if both gates clear, else None.
        """
        if group.occurrence_count < rule.min_occurrences:
            return None

        cadence_fit, median_error = self.cadence_fit(group, rule)
        score = self.policy.score(cadence_fit, amount_stats.fit, group.counterparty_quality)

        if not self.policy.passes_gates(cadence_fit, score):
            logger.debug(
                "Group %s rejected for %s (cadence_fit=%s, score=%s)",
                group.group_key,
                rule.cadence.value,
                cadence_fit,
                score,
            )
            return None

        return CadenceCandidate(
            rule=rule,
            metrics=EvidenceMetrics(
                cadence_fit=cadence_fit,
                amount_fit=amount_stats.fit,
                counterparty_quality=group.counterparty_quality,
                score=score,
            ),
            median_interval_error=median_error,
            occurrence_count=group.occurrence_count,
        )

    def cadence_fit(self, group: CandidateGroup, rule: CadenceRule) -> tuple[Decimal, Decimal]:
        """Fraction of intervals within tolerance, plus the median interval error."""
        errors = [
            self.interval_error(previous.posted_at, current.posted_at, rule)
            for previous, current in zip(group.events, group.events[1:])
        ]
        if not errors:
            return ZERO, Decimal(0)

        matched = sum(1 for error in errors if error <= rule.tolerance_days)
        fit = Decimal(matched) / Decimal(len(errors))
        return fit, median(Decimal(error) for error in errors)

    @staticmethod
    def interval_error(previous: date, current: date, rule: CadenceRule) -> int:
        """Absolute day distance between the actual and expected next date."""
        return abs((current - rule.advance(previous)).days)

    def compute_amount_stats(self, group: CandidateGroup) -> AmountStats:
        """Median-based amount band and fit for a group."""
        abs_amounts = [event.abs_amount for event in group.events]
        median_abs = median(abs_amounts)
        tolerance = self.policy.amount_tolerance(median_abs)

        in_band = sum(1 for amount in abs_amounts if abs(amount - median_abs) <= tolerance)
        signed = [event.amount for event in group.events]

        return AmountStats(
            fit=Decimal(in_band) / Decimal(len(abs_amounts)),
            median_abs_amount=median_abs,
            tolerance=tolerance,
            typical_amount=median(signed),
            amount_min=min(signed),
            amount_max=max(signed),
        )

    @staticmethod
    def select_winner(candidates: list[CadenceCandidate]) -> CadenceCandidate | None:
        """Pick exactly one cadence; the ordering is total."""
        if not candidates:
            return None
        return min(candidates, key=CadenceCandidate.sort_key)

    # Output assembly

    def assemble_pattern(
        self,
        group: CandidateGroup,
        winner: CadenceCandidate,
        amount_stats: AmountStats,
        boundary: date,
    ) -> RecurringPattern:
        """Build the output row for a group's winning cadence."""
        last_seen = group.last_seen_at
        next_expected = winner.rule.advance(last_seen)

        return RecurringPattern(
            group_key=group.group_key,
            account_key=group.account_key,
            counterparty=group.counterparty,
            counterparty_source=group.counterparty_source,
            cadence=winner.cadence,
            typical_amount=amount_stats.typical_amount,
            currency=group.currency,
            first_seen_at=group.first_seen_at,
            last_seen_at=last_seen,
            next_expected_at=next_expected,
            occurrence_count=group.occurrence_count,
            cadence_fit=winner.metrics.cadence_fit,
            amount_fit=winner.metrics.amount_fit,
            score=winner.metrics.score,
            amount_min=amount_stats.amount_min,
            amount_max=amount_stats.amount_max,
            sample_description=group.events[0].description,
            quality_flags=self.quality_flags(group, winner),
            is_active=self.is_active(next_expected, winner.rule, boundary),
        )

    def quality_flags(self, group: CandidateGroup, winner: CadenceCandidate) -> tuple[str, ...]:
        """Diagnostic tags for borderline evidence, in QUALITY_FLAG_ORDER."""
        raised = {
            FLAG_DESCRIPTION_FALLBACK: group.counterparty_source is CounterpartySource.DESCRIPTION,
            FLAG_SHORT_HISTORY: winner.occurrence_count == winner.rule.min_occurrences,
            FLAG_CADENCE_VARIANCE: winner.metrics.cadence_fit < ONE,
            FLAG_HIGH_AMOUNT_VARIANCE: (
                winner.metrics.amount_fit < self.policy.high_amount_variance_below
            ),
        }
        return tuple(flag for flag in QUALITY_FLAG_ORDER if raised[flag])

    def is_active(self, next_expected: date, rule: CadenceRule, boundary: date) -> bool:
        """Active while the boundary is within one step plus tolerance of the last occurrence."""
        deadline = next_expected + timedelta(days=rule.tolerance_days + self.policy.lapse_grace_days)
        return boundary <= deadline


def detect_recurring(
    records: Iterable[TransactionRecord],
    date_range: DateRange | None = None,
    policy_version: str = RECURRING_POLICY_VERSION,
    as_of: date | None = None,
    max_workers: int = 1,
) -> RecurringResult:
    """Detect recurring patterns under a named policy version.

    Empty input yields an empty pattern list, never an error.

    Raises:
        InvalidArgumentError: If the policy version is unknown.
    """
    detector = RecurringDetector(policy=get_policy(policy_version), max_workers=max_workers)
    return detector.detect(records, date_range=date_range, as_of=as_of)
