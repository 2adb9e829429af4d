"""
Recurring classification policy table.

Every tunable constant the detector uses lives here, grouped under an
immutable, versioned RecurringPolicy. The version identifier is emitted
with every result so consumers can tell when behavior changed.

v1 notes:
- Thresholds are conservative (precision-first): both the cadence-fit gate
  and the composite-score gate must clear.
- min_score is a frozen bootstrap value and only changes in a new version.
- Comparisons against gates are inclusive (>=).
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from ..errors import InvalidArgumentError
from ..schemas.dates import CadenceKind, add_months_clamped
from ..schemas.transactions import CounterpartySource

RECURRING_POLICY_VERSION = "recurring/v1"

# Quality flag identifiers (emitted in this order)
FLAG_DESCRIPTION_FALLBACK = "description_fallback"
FLAG_SHORT_HISTORY = "short_history"
FLAG_CADENCE_VARIANCE = "cadence_variance"
FLAG_HIGH_AMOUNT_VARIANCE = "high_amount_variance"

QUALITY_FLAG_ORDER = (
    FLAG_DESCRIPTION_FALLBACK,
    FLAG_SHORT_HISTORY,
    FLAG_CADENCE_VARIANCE,
    FLAG_HIGH_AMOUNT_VARIANCE,
)

DEFAULT_NOISE_TOKENS = frozenset(
    {
        "POS",
        "DEBIT",
        "CARD",
        "PURCHASE",
        "ACH",
        "ONLINE",
        "PAYMENT",
        "TRANSFER",
        "WITHDRAWAL",
        "CHECK",
        "ATM",
        "AUTH",
        "PENDING",
        "VISA",
        "MC",
        "TRX",
        "TXN",
    }
)


@dataclass(frozen=True)
class CadenceRule:
    """Per-cadence hypothesis parameters.

    Day cadences step by step_days. Calendar-month cadences step by
    step_months with the day-of-month clamped; step_days is then only the
    nominal length reported in to_dict().
    """

    cadence: CadenceKind
    step_days: int
    tolerance_days: int
    min_occurrences: int
    # Final tie-break: higher wins
    priority: int
    step_months: int = 0

    def advance(self, value: date) -> date:
        """Apply one cadence step to a date."""
        if self.cadence.is_calendar_month:
            return add_months_clamped(value, self.step_months)
        return value + timedelta(days=self.step_days)


DEFAULT_CADENCE_RULES: tuple[CadenceRule, ...] = (
    CadenceRule(CadenceKind.WEEKLY, step_days=7, tolerance_days=1, min_occurrences=4, priority=1),
    CadenceRule(
        CadenceKind.BIWEEKLY, step_days=14, tolerance_days=2, min_occurrences=4, priority=2
    ),
    CadenceRule(
        CadenceKind.MONTHLY,
        step_days=30,
        tolerance_days=3,
        min_occurrences=3,
        priority=3,
        step_months=1,
    ),
)


@dataclass(frozen=True)
class RecurringPolicy:
    """Immutable set of detector constants for one policy version."""

    version: str

    # Composite score weights (sum to 1.00)
    cadence_weight: Decimal = Decimal("0.65")
    amount_weight: Decimal = Decimal("0.25")
    counterparty_weight: Decimal = Decimal("0.10")

    # Hard gates (inclusive)
    min_cadence_fit: Decimal = Decimal("0.75")
    min_score: Decimal = Decimal("0.78")

    # Amount band: max(floor, median * ratio)
    amount_tolerance_ratio: Decimal = Decimal("0.15")
    amount_tolerance_floor: Decimal = Decimal("1.00")

    # Counterparty quality per label source (merchant strictly higher)
    merchant_quality: Decimal = Decimal("1.00")
    description_quality: Decimal = Decimal("0.80")

    # Description fingerprinting
    fingerprint_token_limit: int = 3
    min_fingerprint_tokens: int = 1
    noise_tokens: frozenset[str] = DEFAULT_NOISE_TOKENS

    # Quality flag thresholds
    high_amount_variance_below: Decimal = Decimal("0.90")

    # Extra slack beyond step + tolerance before a series counts as lapsed
    lapse_grace_days: int = 0

    cadence_rules: tuple[CadenceRule, ...] = field(default=DEFAULT_CADENCE_RULES)

    def score(
        self,
        cadence_fit: Decimal,
        amount_fit: Decimal,
        counterparty_quality: Decimal,
    ) -> Decimal:
        """Weighted composite score in [0, 1]."""
        return (
            self.cadence_weight * cadence_fit
            + self.amount_weight * amount_fit
            + self.counterparty_weight * counterparty_quality
        )

    def passes_gates(self, cadence_fit: Decimal, score: Decimal) -> bool:
        """Both gates must clear; comparisons are inclusive."""
        return cadence_fit >= self.min_cadence_fit and score >= self.min_score

    def amount_tolerance(self, median_abs_amount: Decimal) -> Decimal:
        """Absolute amount band around the group median."""
        return max(self.amount_tolerance_floor, median_abs_amount * self.amount_tolerance_ratio)

    def rule_for(self, cadence: CadenceKind) -> CadenceRule:
        """Look up the rule for a cadence."""
        for rule in self.cadence_rules:
            if rule.cadence is cadence:
                return rule
        raise KeyError(f"Policy {self.version} has no rule for cadence {cadence.value}")

    def counterparty_quality(self, source: CounterpartySource) -> Decimal:
        """Fixed quality value for a label source."""
        if source is CounterpartySource.MERCHANT:
            return self.merchant_quality
        return self.description_quality

    def to_dict(self) -> dict:
        """Serialize for audit/debug output."""
        return {
            "version": self.version,
            "weights": {
                "cadence": str(self.cadence_weight),
                "amount": str(self.amount_weight),
                "counterparty": str(self.counterparty_weight),
            },
            "min_cadence_fit": str(self.min_cadence_fit),
            "min_score": str(self.min_score),
            "amount_tolerance_ratio": str(self.amount_tolerance_ratio),
            "amount_tolerance_floor": str(self.amount_tolerance_floor),
            "cadences": [
                {
                    "cadence": rule.cadence.value,
                    "step_days": rule.step_days,
                    "step_months": rule.step_months,
                    "tolerance_days": rule.tolerance_days,
                    "min_occurrences": rule.min_occurrences,
                    "priority": rule.priority,
                }
                for rule in self.cadence_rules
            ],
        }


RECURRING_POLICY_V1 = RecurringPolicy(version=RECURRING_POLICY_VERSION)

POLICY_REGISTRY: Mapping[str, RecurringPolicy] = MappingProxyType(
    {RECURRING_POLICY_V1.version: RECURRING_POLICY_V1}
)


def get_policy(version: str = RECURRING_POLICY_VERSION) -> RecurringPolicy:
    """Resolve a policy version identifier.

    Raises:
        InvalidArgumentError: If the version is not registered.
    """
    policy = POLICY_REGISTRY.get(version)
    if policy is None:
        known = ", ".join(sorted(POLICY_REGISTRY))
        raise InvalidArgumentError(
            f"Unknown recurring policy version `{version}`.",
            [f"Use one of the known policy versions: {known}."],
            data={"known_versions": sorted(POLICY_REGISTRY)},
        )
    return policy
