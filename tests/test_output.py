"""Tests for CLI output rendering."""

import json
from datetime import date

from ledger_recurring.detection import detect_recurring
from ledger_recurring.errors import InvalidArgumentError
from ledger_recurring.runner.output import (
    failure_envelope,
    render_error_text,
    render_recurring_text,
    render_status_text,
    success_envelope,
    to_json,
)


class TestEnvelopes:
    """JSON success/failure contracts."""

    def test_success_envelope(self, netflix_series):
        data = detect_recurring(netflix_series, as_of=date(2026, 6, 30)).to_dict()
        envelope = success_envelope("recurring", data)

        assert list(envelope) == ["ok", "command", "version", "data"]
        assert envelope["ok"] is True
        assert envelope["version"] == "v1"

        parsed = json.loads(to_json(envelope))
        assert parsed["data"]["patterns"][0]["score"] == "1.0000"

    def test_failure_envelope(self):
        error = InvalidArgumentError.for_command("Bad input.", "recurring")
        envelope = failure_envelope(error)

        assert envelope["ok"] is False
        assert envelope["error"]["code"] == "invalid_argument"
        assert envelope["error"]["recovery_steps"] == [
            "Run `ledger-recurring recurring --help` for usage."
        ]
        assert envelope["data"] == {"command_hint": "recurring"}

    def test_failure_envelope_without_data(self):
        envelope = failure_envelope(InvalidArgumentError("Bad input."))
        assert "data" not in envelope


class TestTextRendering:
    """Human-readable output."""

    def test_patterns_table(self, mixed_ledger):
        data = detect_recurring(mixed_ledger, as_of=date(2026, 7, 1)).to_dict()
        text = render_recurring_text(data)

        assert text.startswith("Found 3 recurring patterns.")
        assert "Merchant" in text
        assert "-54.99 USD" in text
        assert "IRON TEMPLE GYM: description_fallback" in text
        assert "Policy:       recurring/v1" in text
        # Output order follows the detector
        assert text.index("ACME CORP PAYROLL") < text.index("IRON TEMPLE GYM") < text.index("NETFLIX")

    def test_empty_result_with_window_and_coverage(self):
        data = {
            "policy_version": "recurring/v1",
            "from": "2026-05-01",
            "to": None,
            "patterns": [],
            "data_range_hint": {"earliest": "2026-01-14", "latest": "2026-06-14"},
        }

        text = render_recurring_text(data)

        assert text.splitlines()[0] == "No recurring patterns found from 2026-05-01."
        assert "Data covers:  2026-01-14 to 2026-06-14" in text

    def test_error_text(self):
        error = InvalidArgumentError.for_command("Bad input.", "recurring")
        text = render_error_text(error)

        assert text.splitlines()[0] == "❌ Bad input. (invalid_argument)"
        assert "Next steps:" in text

    def test_status_text(self):
        text = render_status_text(
            {
                "transactions_total": 6,
                "accounts_total": 1,
                "recurring_cached": 0,
                "cache_refreshed_at": None,
                "cache_policy_version": None,
                "earliest": "2026-01-14",
                "latest": "2026-06-14",
            }
        )
        assert "Transactions:           6" in text
        assert "never" in text
