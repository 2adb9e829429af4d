"""
CLI output rendering.

Two modes:
- json: success/failure envelopes for agents ({ok, command, version, data})
- text: compact tables for humans

Rendering never reorders patterns; the detector's order is the contract.
"""

import json
from typing import Any

from .. import API_VERSION
from ..errors import RecurringError

RECURRING_COLUMNS = (
    ("Merchant", "counterparty", "left"),
    ("Cadence", "cadence", "left"),
    ("Typical Amount", "typical_amount", "right"),
    ("Last Seen", "last_seen_at", "left"),
    ("Next Expected", "next_expected_at", "left"),
    ("Count", "occurrence_count", "right"),
    ("Score", "score", "right"),
    ("Active", "is_active", "left"),
)


def success_envelope(command: str, data: dict[str, Any]) -> dict[str, Any]:
    """Wrap command data in the success contract."""
    return {
        "ok": True,
        "command": command,
        "version": API_VERSION,
        "data": data,
    }


def failure_envelope(error: RecurringError) -> dict[str, Any]:
    """Wrap an error in the failure contract."""
    envelope: dict[str, Any] = {
        "ok": False,
        "error": error.to_dict(),
    }
    if error.data is not None:
        envelope["data"] = error.data
    return envelope


def to_json(envelope: dict[str, Any]) -> str:
    """Serialize an envelope (key order is preserved, not sorted)."""
    return json.dumps(envelope, indent=2, ensure_ascii=False)


def _cell(row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    if key == "typical_amount":
        return f"{value} {row.get('currency', '')}".strip()
    if key == "is_active":
        return "yes" if value else "no"
    if value is None:
        return "-"
    return str(value)


def render_table(rows: list[dict[str, Any]]) -> list[str]:
    """Render pattern rows as an aligned text table."""
    cells = [[_cell(row, key) for _, key, _ in RECURRING_COLUMNS] for row in rows]
    widths = [len(title) for title, _, _ in RECURRING_COLUMNS]
    for line in cells:
        for index, text in enumerate(line):
            widths[index] = max(widths[index], len(text))

    def fmt(values: list[str]) -> str:
        parts = []
        for (_, _, align), width, text in zip(RECURRING_COLUMNS, widths, values):
            parts.append(text.rjust(width) if align == "right" else text.ljust(width))
        return "  ".join(parts).rstrip()

    lines = [fmt([title for title, _, _ in RECURRING_COLUMNS])]
    lines.append("  ".join("-" * width for width in widths))
    lines.extend(fmt(line) for line in cells)
    return lines


def _window_text(data: dict[str, Any]) -> str:
    start = data.get("from")
    end = data.get("to")
    if start and end:
        return f" from {start} to {end}"
    if start:
        return f" from {start}"
    if end:
        return f" through {end}"
    return ""


def _coverage_lines(data: dict[str, Any]) -> list[str]:
    hint = data.get("data_range_hint") or {}
    earliest = hint.get("earliest")
    latest = hint.get("latest")
    if not earliest and not latest:
        return []
    return [f"  Data covers:  {earliest or 'unknown'} to {latest or 'unknown'}"]


def render_recurring_text(data: dict[str, Any]) -> str:
    """Human rendering of a recurring result dictionary."""
    patterns = data.get("patterns", [])
    window = _window_text(data)
    policy = data.get("policy_version", "unknown")

    if not patterns:
        lines = [f"No recurring patterns found{window}.", f"  Policy:       {policy}"]
        lines.extend(_coverage_lines(data))
        return "\n".join(lines)

    count = len(patterns)
    noun = "pattern" if count == 1 else "patterns"
    lines = [f"Found {count} recurring {noun}{window}.", "", "Patterns:"]
    lines.extend(render_table(patterns))

    flagged = [p for p in patterns if p.get("quality_flags")]
    if flagged:
        lines.append("")
        lines.append("Quality flags:")
        for pattern in flagged:
            lines.append(f"  {pattern['counterparty']}: {', '.join(pattern['quality_flags'])}")

    lines.append("")
    lines.append("Summary:")
    lines.append(f"  Policy:       {policy}")
    if data.get("cache_refreshed_at"):
        lines.append(f"  Cached at:    {data['cache_refreshed_at']}")
    lines.extend(_coverage_lines(data))
    return "\n".join(lines)


def render_error_text(error: RecurringError) -> str:
    """Human rendering of an error with recovery steps."""
    lines = [f"❌ {error.message} ({error.code})"]
    if error.recovery_steps:
        lines.append("")
        lines.append("Next steps:")
        lines.extend(f"  - {step}" for step in error.recovery_steps)
    return "\n".join(lines)


def render_refresh_text(data: dict[str, Any]) -> str:
    """Human rendering of a cache refresh summary."""
    return (
        f"✓ Recurring cache refreshed: {data['recurring_rows']} row(s) "
        f"under {data['policy_version']} at {data['completed_at']}"
    )


def render_status_text(data: dict[str, Any]) -> str:
    """Human rendering of ledger statistics."""
    lines = [
        "",
        "📊 Ledger Status",
        "=" * 40,
        f"  Transactions:           {data['transactions_total']}",
        f"  Accounts:               {data['accounts_total']}",
        f"  Data covers:            {data['earliest'] or 'n/a'} to {data['latest'] or 'n/a'}",
        f"  Cached patterns:        {data['recurring_cached']}",
        f"  Cache refreshed at:     {data['cache_refreshed_at'] or 'never'}",
        f"  Cache policy version:   {data['cache_policy_version'] or 'n/a'}",
        "",
    ]
    return "\n".join(lines)
