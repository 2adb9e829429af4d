"""
Error taxonomy for the recurring detector.

Every error carries a stable machine code, a human message, and recovery
steps so that an agent consuming the CLI can act on a failure without
parsing prose.

- InvalidArgumentError: bad caller input (date ranges, unknown policy).
- LedgerError and subclasses: the ledger collaborator failed. These are
  raised by the store and propagate through the engine unchanged.
"""

from pathlib import Path
from typing import Any

CLI_NAME = "ledger-recurring"


class RecurringError(Exception):
    """Base exception for all recurring-detection errors."""

    code = "internal_error"

    def __init__(
        self,
        message: str,
        recovery_steps: list[str] | None = None,
        data: dict[str, Any] | None = None,
        code: str | None = None,
    ):
        self.message = message
        self.recovery_steps = list(recovery_steps or [])
        self.data = data
        if code is not None:
            self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the error contract used by failure envelopes."""
        return {
            "code": self.code,
            "message": self.message,
            "recovery_steps": list(self.recovery_steps),
        }


class InvalidArgumentError(RecurringError):
    """Caller supplied an argument that cannot be used as-is."""

    code = "invalid_argument"

    @classmethod
    def for_command(cls, message: str, command: str | None = None) -> "InvalidArgumentError":
        """Build an argument error with a `--help` hint for the given command."""
        if command:
            hint = f"Run `{CLI_NAME} {command} --help` for usage."
            return cls(message, [hint], data={"command_hint": command})
        return cls(message, [f"Run `{CLI_NAME} --help` for usage."])


class LedgerError(RecurringError):
    """Base exception for ledger (storage) failures."""

    code = "ledger_unavailable"


class LedgerUnavailableError(LedgerError):
    """Ledger database could not be opened or queried."""

    def __init__(self, path: Path | str, detail: str):
        location = str(path)
        self.path = location
        super().__init__(
            f"Ledger database at `{location}` is unavailable: {detail}",
            [
                f"Check that `{location}` exists and is readable.",
                "Set `LEDGER_DB_PATH` or `ledger.db_path` in config.yaml to a valid ledger.",
            ],
        )


class LedgerLockedError(LedgerError):
    """Another process holds the ledger lock."""

    code = "ledger_locked"

    def __init__(self, path: Path | str):
        location = str(path)
        self.path = location
        super().__init__(
            f"Ledger database is locked at `{location}`.",
            [f"Close other processes using `{location}` so the lock is released."],
        )


class LedgerCorruptError(LedgerError):
    """Ledger file is not a usable SQLite database."""

    code = "ledger_corrupt"

    def __init__(self, path: Path | str):
        location = str(path)
        self.path = location
        super().__init__(
            f"Ledger database appears corrupt at `{location}`.",
            [f"Replace `{location}` with a valid SQLite ledger file or restore from backup."],
        )


class CacheUnavailableError(RecurringError):
    """Recurring cache is missing or was built under another policy version."""

    code = "cache_unavailable"

    def __init__(self, detail: str):
        super().__init__(
            f"Recurring cache is unavailable: {detail}",
            [
                f"Run `{CLI_NAME} refresh` to rebuild the cache.",
                f"Or run `{CLI_NAME} recurring` without `--cached` to compute fresh results.",
            ],
        )
