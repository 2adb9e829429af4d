"""Recurring command service.

Wires validation, the query adapter and the detector together for one
`recurring` invocation:

1. validate the range (fails before the ledger is touched)
2. fetch records for the window
3. detect under the configured policy
4. attach the ledger coverage hint

load_cached_recurring() is the read path for the materialized cache.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from ledger_recurring.detection import RecurringDetector
from ledger_recurring.errors import CacheUnavailableError, InvalidArgumentError
from ledger_recurring.policy import get_policy
from ledger_recurring.schemas.dates import build_date_range
from ledger_recurring.schemas.recurring import RecurringResult
from ledger_recurring.services.transaction_query import TransactionQueryAdapter

if TYPE_CHECKING:
    from ledger_recurring.config import Config
    from ledger_recurring.state_store import LedgerStore

logger = logging.getLogger(__name__)

COMMAND_NAME = "recurring"


def run_recurring(
    store: LedgerStore,
    config: Config,
    from_value: str | None = None,
    to_value: str | None = None,
    as_of: date | None = None,
    max_workers: int | None = None,
) -> RecurringResult:
    """Run recurring detection over the ledger.

    Args:
        store: Ledger collaborator.
        config: Application configuration (policy version, workers).
        from_value: Optional YYYY-MM-DD lower bound (inclusive).
        to_value: Optional YYYY-MM-DD upper bound (inclusive).
        as_of: Activity boundary for an open-ended window (defaults to today).
        max_workers: Override for config.detection.max_workers.

    Raises:
        InvalidArgumentError: Bad range, worker count below 1, or unknown
            policy version.
        LedgerError: The ledger could not be read.
    """
    date_range = build_date_range(from_value, to_value, COMMAND_NAME)
    if max_workers is None:
        max_workers = config.detection.max_workers
    elif max_workers < 1:
        raise InvalidArgumentError.for_command("`workers` must be at least 1.", COMMAND_NAME)
    policy = get_policy(config.detection.policy_version)

    records = TransactionQueryAdapter(store).fetch(date_range)
    detector = RecurringDetector(policy=policy, max_workers=max_workers)
    result = detector.detect(records, date_range=date_range, as_of=as_of)
    result.data_range_hint = store.get_data_range()
    return result


def load_cached_recurring(store: LedgerStore, config: Config) -> dict[str, Any]:
    """Serve the last full-window refresh from the recurring cache.

    Rows come back exactly as refresh stored them, including is_active as of
    the refresh boundary.

    Raises:
        CacheUnavailableError: Never refreshed, or refreshed under a different
            policy version than the configured one.
        LedgerError: The ledger could not be read.
    """
    metadata = store.get_cache_metadata()
    if metadata is None:
        raise CacheUnavailableError("it has never been refreshed.")

    policy_version = config.detection.policy_version
    if metadata["policy_version"] != policy_version:
        raise CacheUnavailableError(
            f"it was built under `{metadata['policy_version']}`, not `{policy_version}`."
        )

    patterns = store.get_recurring_cache()
    logger.debug("Serving %d cached pattern(s) from %s", len(patterns), metadata["refreshed_at"])
    return {
        "policy_version": metadata["policy_version"],
        "from": None,
        "to": None,
        "patterns": patterns,
        "cache_refreshed_at": metadata["refreshed_at"],
        "data_range_hint": store.get_data_range(),
    }
