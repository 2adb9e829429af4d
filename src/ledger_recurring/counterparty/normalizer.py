"""
Counterparty normalization.

Produces the stable grouping label for a transaction:
1. merchant field, normalized, when it survives normalization
2. otherwise a fingerprint of the description: the first N non-noise,
   non-numeric tokens

A description that leaves no usable tokens makes the record ineligible for
grouping. Weak labels are never merged under an empty key.
"""

from dataclasses import dataclass
from decimal import Decimal

from ..policy import RECURRING_POLICY_V1, RecurringPolicy
from ..schemas.transactions import CounterpartySource

FINGERPRINT_SEPARATOR = " "


@dataclass(frozen=True)
class CounterpartyIdentity:
    """Resolved counterparty label with provenance."""

    label: str
    source: CounterpartySource
    quality: Decimal


def normalize_text(value: str | None) -> str | None:
    """Trim, uppercase, and collapse every non-alphanumeric run to one space.

    Returns None when nothing alphanumeric remains.
    """
    if value is None:
        return None

    output: list[str] = []
    previous_space = False
    for character in value.strip():
        if character.isascii() and character.isalnum():
            output.append(character.upper())
            previous_space = False
        elif not previous_space:
            output.append(" ")
            previous_space = True

    normalized = "".join(output).strip()
    return normalized or None


def normalize_merchant(value: str | None) -> str | None:
    """Normalize a merchant label."""
    return normalize_text(value)


def is_numeric_token(token: str) -> bool:
    return token.isascii() and token.isdigit()


def fingerprint_tokens(value: str | None, policy: RecurringPolicy = RECURRING_POLICY_V1) -> list[str]:
    """Stable tokens of a description, capped at the policy token limit."""
    normalized = normalize_text(value)
    if normalized is None:
        return []

    tokens: list[str] = []
    for token in normalized.split():
        if token in policy.noise_tokens or is_numeric_token(token):
            continue
        tokens.append(token)
        if len(tokens) == policy.fingerprint_token_limit:
            break
    return tokens


def description_fingerprint(
    value: str | None, policy: RecurringPolicy = RECURRING_POLICY_V1
) -> str | None:
    """Fingerprint a free-text description, or None if it has no stable tokens."""
    tokens = fingerprint_tokens(value, policy)
    if len(tokens) < max(policy.min_fingerprint_tokens, 1):
        return None
    return FINGERPRINT_SEPARATOR.join(tokens)


def resolve_counterparty(
    merchant: str | None,
    description: str | None,
    policy: RecurringPolicy = RECURRING_POLICY_V1,
) -> CounterpartyIdentity | None:
    """Resolve the grouping label for one transaction.

    Returns:
        CounterpartyIdentity, or None if the record is not eligible.
    """
    merchant_label = normalize_merchant(merchant)
    if merchant_label:
        return CounterpartyIdentity(
            label=merchant_label,
            source=CounterpartySource.MERCHANT,
            quality=policy.counterparty_quality(CounterpartySource.MERCHANT),
        )

    fingerprint = description_fingerprint(description, policy)
    if fingerprint is None:
        return None

    return CounterpartyIdentity(
        label=fingerprint,
        source=CounterpartySource.DESCRIPTION,
        quality=policy.counterparty_quality(CounterpartySource.DESCRIPTION),
    )
