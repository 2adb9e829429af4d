"""
Calendar utilities (strict).

All dates in the detector are plain `datetime.date` values. Parsing is
strict at the caller boundary (bad input is an argument error, never
silently corrected) and lenient for stored rows (a malformed stored date
skips the row).

Monthly stepping clamps the day-of-month to the target month length:
2026-01-31 + 1 month = 2026-02-28, and the clamp carries forward
(2026-02-28 + 1 month = 2026-03-28).
"""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

from ..errors import InvalidArgumentError

ISO_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class CadenceKind(str, Enum):
    """Recurrence interval classes the detector can hypothesize."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def is_calendar_month(self) -> bool:
        """Monthly steps by calendar month; the others by whole days."""
        return self is CadenceKind.MONTHLY


@dataclass(frozen=True)
class DateRange:
    """Inclusive, optionally open-ended date window.

    Construct through build_date_range() when the bounds come from a user;
    the constructor itself also refuses an inverted range.
    """

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidArgumentError.for_command(
                "Invalid date range: `from` must be on or before `to`."
            )

    @property
    def is_bounded(self) -> bool:
        """True if both ends are set."""
        return self.start is not None and self.end is not None

    def contains(self, value: date) -> bool:
        """Check whether a date falls inside the window."""
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True

    def to_dict(self) -> dict[str, str | None]:
        """Serialize bounds as ISO strings (None for open ends)."""
        return {
            "from": format_iso_date(self.start) if self.start else None,
            "to": format_iso_date(self.end) if self.end else None,
        }


def is_leap_year(year: int) -> bool:
    """Gregorian leap-year rule."""
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month."""
    if month == 2:
        return 29 if is_leap_year(year) else 28
    if month in (4, 6, 9, 11):
        return 30
    return 31


def add_months_clamped(value: date, months: int) -> date:
    """Step a date by whole calendar months, clamping the day to the month end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, days_in_month(year, month))
    return date(year, month, day)


def format_iso_date(value: date) -> str:
    """Format as YYYY-MM-DD."""
    return value.strftime("%Y-%m-%d")


def looks_like_iso_date(value: str) -> bool:
    """Shape check only: NNNN-NN-NN."""
    return bool(ISO_DATE_PATTERN.fullmatch(value))


def parse_transaction_date(value: str | date | None) -> date | None:
    """Parse a stored transaction date, returning None if it is unusable."""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    value = value.strip()
    if not looks_like_iso_date(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_iso_date_strict(value: str, field_name: str, command: str | None = None) -> date:
    """Parse a caller-supplied YYYY-MM-DD date.

    Raises:
        InvalidArgumentError: If the shape is wrong or the date does not exist.
    """
    if not looks_like_iso_date(value):
        raise InvalidArgumentError.for_command(
            f"`{field_name}` must use YYYY-MM-DD format with a real calendar date.",
            command,
        )
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidArgumentError.for_command(
            f"`{field_name}` must use YYYY-MM-DD format with valid calendar values.",
            command,
        ) from None


def build_date_range(
    from_value: str | None,
    to_value: str | None,
    command: str | None = None,
) -> DateRange:
    """Parse and validate optional range bounds.

    An inverted range is rejected, never clamped.
    """
    start = parse_iso_date_strict(from_value, "from", command) if from_value else None
    end = parse_iso_date_strict(to_value, "to", command) if to_value else None

    if start is not None and end is not None and start > end:
        raise InvalidArgumentError.for_command(
            "Invalid date range: `from` must be on or before `to`.",
            command,
        )

    return DateRange(start=start, end=end)
