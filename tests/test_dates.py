"""Tests for calendar utilities and strict date parsing."""

from datetime import date

import pytest

from ledger_recurring.errors import InvalidArgumentError
from ledger_recurring.policy import RECURRING_POLICY_V1
from ledger_recurring.schemas.dates import (
    CadenceKind,
    DateRange,
    add_months_clamped,
    build_date_range,
    days_in_month,
    is_leap_year,
    parse_iso_date_strict,
    parse_transaction_date,
)


class TestCalendar:
    """Leap years, month lengths and month stepping."""

    @pytest.mark.parametrize(
        "year,expected",
        [(2024, True), (2026, False), (1900, False), (2000, True), (2028, True)],
    )
    def test_is_leap_year(self, year, expected) -> None:
        assert is_leap_year(year) is expected

    def test_days_in_month(self) -> None:
        assert days_in_month(2026, 2) == 28
        assert days_in_month(2028, 2) == 29
        assert days_in_month(2026, 4) == 30
        assert days_in_month(2026, 12) == 31

    def test_add_months_clamps_to_month_end(self) -> None:
        """Jan 31 + 1 month is the last day of February."""
        assert add_months_clamped(date(2026, 1, 31), 1) == date(2026, 2, 28)
        assert add_months_clamped(date(2028, 1, 31), 1) == date(2028, 2, 29)

    def test_clamp_carries_forward(self) -> None:
        """Stepping from a clamped date keeps the clamped day."""
        february = add_months_clamped(date(2026, 1, 31), 1)
        assert add_months_clamped(february, 1) == date(2026, 3, 28)

    def test_add_months_crosses_year(self) -> None:
        assert add_months_clamped(date(2025, 12, 15), 1) == date(2026, 1, 15)
        assert add_months_clamped(date(2026, 11, 30), 3) == date(2027, 2, 28)

    def test_cadence_rule_advance(self) -> None:
        """v1 steps: 7 days, 14 days, one clamped calendar month."""
        policy = RECURRING_POLICY_V1
        assert policy.rule_for(CadenceKind.WEEKLY).advance(date(2026, 12, 28)) == date(2027, 1, 4)
        assert policy.rule_for(CadenceKind.BIWEEKLY).advance(date(2026, 2, 20)) == date(2026, 3, 6)
        assert policy.rule_for(CadenceKind.MONTHLY).advance(date(2026, 3, 31)) == date(2026, 4, 30)


class TestStrictParsing:
    """Caller-supplied dates are rejected, never corrected."""

    def test_valid_date(self) -> None:
        assert parse_iso_date_strict("2026-02-28", "from") == date(2026, 2, 28)

    @pytest.mark.parametrize("value", ["2026/01/01", "20260101", "2026-1-01", "Jan 1", "", "2026-01-01\n"])
    def test_bad_shape(self, value) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            parse_iso_date_strict(value, "from")
        assert "`from` must use YYYY-MM-DD format" in exc_info.value.message

    @pytest.mark.parametrize("value", ["2026-02-30", "2026-13-01", "2027-02-29", "2026-00-10"])
    def test_impossible_calendar_values(self, value) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            parse_iso_date_strict(value, "to")
        assert "valid calendar values" in exc_info.value.message

    def test_leap_day_accepted(self) -> None:
        assert parse_iso_date_strict("2028-02-29", "to") == date(2028, 2, 29)

    def test_command_hint_in_recovery_steps(self) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            parse_iso_date_strict("yesterday", "from", "recurring")
        error = exc_info.value
        assert error.code == "invalid_argument"
        assert any("ledger-recurring recurring --help" in step for step in error.recovery_steps)
        assert error.data == {"command_hint": "recurring"}


class TestLenientParsing:
    """Stored dates that cannot be parsed skip the row."""

    def test_valid(self) -> None:
        assert parse_transaction_date(" 2026-05-01 ") == date(2026, 5, 1)

    def test_date_passthrough(self) -> None:
        value = date(2026, 5, 1)
        assert parse_transaction_date(value) is value

    @pytest.mark.parametrize("value", [None, "", "05/01/2026", "2026-02-31"])
    def test_unusable(self, value) -> None:
        assert parse_transaction_date(value) is None


class TestDateRange:
    """Range construction and validation."""

    def test_open_range(self) -> None:
        date_range = build_date_range(None, None)
        assert date_range.start is None
        assert date_range.end is None
        assert not date_range.is_bounded
        assert date_range.to_dict() == {"from": None, "to": None}

    def test_bounded_range(self) -> None:
        date_range = build_date_range("2026-01-01", "2026-03-31")
        assert date_range.is_bounded
        assert date_range.contains(date(2026, 1, 1))
        assert date_range.contains(date(2026, 3, 31))
        assert not date_range.contains(date(2026, 4, 1))
        assert date_range.to_dict() == {"from": "2026-01-01", "to": "2026-03-31"}

    def test_single_day_range(self) -> None:
        date_range = build_date_range("2026-01-01", "2026-01-01")
        assert date_range.contains(date(2026, 1, 1))

    def test_inverted_range_rejected(self) -> None:
        """An inverted range is an argument error, not clamped."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            build_date_range("2026-03-01", "2026-01-01", "recurring")
        assert exc_info.value.message == "Invalid date range: `from` must be on or before `to`."

    def test_constructor_rejects_inverted_range(self) -> None:
        with pytest.raises(InvalidArgumentError):
            DateRange(start=date(2026, 3, 1), end=date(2026, 1, 1))
