"""Counterparty normalizer: merchant labels and description fingerprints."""

from .normalizer import (
    CounterpartyIdentity,
    description_fingerprint,
    fingerprint_tokens,
    normalize_merchant,
    normalize_text,
    resolve_counterparty,
)

__all__ = [
    "CounterpartyIdentity",
    "description_fingerprint",
    "fingerprint_tokens",
    "normalize_merchant",
    "normalize_text",
    "resolve_counterparty",
]
