"""Tests for counterparty normalization and description fingerprints."""

from decimal import Decimal

import pytest

from ledger_recurring.counterparty import (
    description_fingerprint,
    fingerprint_tokens,
    normalize_text,
    resolve_counterparty,
)
from ledger_recurring.schemas import CounterpartySource


class TestNormalizeText:
    """Uppercase, alphanumeric-only, single-spaced labels."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Netflix.com", "NETFLIX COM"),
            ("  spotify   usa  ", "SPOTIFY USA"),
            ("AT&T*Wireless", "AT T WIRELESS"),
            ("Café Nero", "CAF NERO"),
        ],
    )
    def test_normalizes(self, raw, expected) -> None:
        assert normalize_text(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "***", "--//--"])
    def test_empty_after_normalization(self, raw) -> None:
        assert normalize_text(raw) is None


class TestFingerprint:
    """Description fingerprints drop noise and numeric tokens."""

    def test_noise_and_numbers_dropped(self) -> None:
        tokens = fingerprint_tokens("POS DEBIT 4411 IRON TEMPLE GYM")
        assert tokens == ["IRON", "TEMPLE", "GYM"]

    def test_token_limit(self) -> None:
        """Only the first three stable tokens are kept."""
        fingerprint = description_fingerprint("ACH PAYMENT CITY WATER DEPT BILLING 0042")
        assert fingerprint == "CITY WATER DEPT"

    def test_same_fingerprint_for_varying_reference_numbers(self) -> None:
        first = description_fingerprint("SPOTIFY USA 83921 CARD PURCHASE")
        second = description_fingerprint("SPOTIFY USA 11407 CARD PURCHASE")
        assert first == second == "SPOTIFY USA"

    def test_alphanumeric_token_kept(self) -> None:
        """Only purely numeric tokens are dropped."""
        assert fingerprint_tokens("REF A1B2 STORE") == ["REF", "A1B2", "STORE"]

    @pytest.mark.parametrize("raw", ["POS DEBIT 1234 5678", "0000 1111", "", None])
    def test_no_stable_tokens(self, raw) -> None:
        assert description_fingerprint(raw) is None


class TestResolveCounterparty:
    """Merchant first, description fingerprint as fallback."""

    def test_merchant_preferred(self) -> None:
        identity = resolve_counterparty("Netflix", "NETFLIX.COM 8839 CA")
        assert identity.label == "NETFLIX"
        assert identity.source is CounterpartySource.MERCHANT
        assert identity.quality == Decimal("1.00")

    def test_blank_merchant_falls_back(self) -> None:
        identity = resolve_counterparty("  ", "CARD PURCHASE GOOGLE STORAGE 0099")
        assert identity.label == "GOOGLE STORAGE"
        assert identity.source is CounterpartySource.DESCRIPTION
        assert identity.quality == Decimal("0.80")

    def test_missing_merchant_falls_back(self) -> None:
        identity = resolve_counterparty(None, "Comcast Cable")
        assert identity.label == "COMCAST CABLE"
        assert identity.source is CounterpartySource.DESCRIPTION

    def test_ineligible(self) -> None:
        """No merchant and no stable description tokens: not eligible."""
        assert resolve_counterparty(None, "ATM WITHDRAWAL 00231") is None
