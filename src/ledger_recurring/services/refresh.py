"""Recurring cache refresh.

Recomputes detection over the full ledger window and replaces the
materialized cache in one transaction. The cache is an optimization only:
its rows are exactly what an unbounded detection returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from ledger_recurring.detection import RecurringDetector
from ledger_recurring.policy import get_policy
from ledger_recurring.schemas.dates import DateRange
from ledger_recurring.services.transaction_query import TransactionQueryAdapter

if TYPE_CHECKING:
    from ledger_recurring.config import Config
    from ledger_recurring.state_store import LedgerStore

logger = logging.getLogger(__name__)


@dataclass
class RefreshSummary:
    """Outcome of a cache refresh."""

    policy_version: str
    recurring_rows: int
    completed_at: str

    def to_dict(self) -> dict:
        return {
            "policy_version": self.policy_version,
            "recurring_rows": self.recurring_rows,
            "completed_at": self.completed_at,
        }


def now_timestamp() -> str:
    """UTC timestamp in ISO format with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def refresh_recurring_cache(
    store: LedgerStore,
    config: Config,
    as_of: date | None = None,
) -> RefreshSummary:
    """Recompute recurring patterns for the whole ledger and cache them.

    Raises:
        InvalidArgumentError: Unknown policy version.
        LedgerError: The ledger could not be read or written.
    """
    policy = get_policy(config.detection.policy_version)
    date_range = DateRange()

    records = TransactionQueryAdapter(store).fetch(date_range)
    detector = RecurringDetector(policy=policy, max_workers=config.detection.max_workers)
    result = detector.detect(records, date_range=date_range, as_of=as_of)

    completed_at = now_timestamp()
    rows = store.replace_recurring_cache(result, refreshed_at=completed_at)
    logger.info("Refreshed recurring cache: %d row(s) under %s", rows, policy.version)

    return RefreshSummary(
        policy_version=policy.version,
        recurring_rows=rows,
        completed_at=completed_at,
    )
