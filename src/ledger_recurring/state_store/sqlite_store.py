"""
SQLite-based ledger store.

Tables:
- transactions: validated ledger rows (the detector's only input)
- recurring_materialized: optional cache of the last full-window detection
- cache_metadata: when the cache was refreshed and under which policy

The store is the ledger collaborator: it applies the date-range filter in
SQL and raises LedgerError subclasses for infrastructure failures. Callers
never retry; that policy belongs here, and there is none.
"""

import json
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from ..errors import LedgerCorruptError, LedgerError, LedgerLockedError, LedgerUnavailableError
from ..schemas.dates import format_iso_date, parse_transaction_date
from ..schemas.recurring import RecurringResult
from ..schemas.transactions import TransactionRecord

logger = logging.getLogger(__name__)

RECURRING_CACHE_NAME = "recurring"


def map_sqlite_error(db_path: Path, error: sqlite3.Error) -> LedgerError:
    """Translate a sqlite3 exception into the ledger error taxonomy."""
    detail = str(error).lower()
    if "locked" in detail or "busy" in detail:
        return LedgerLockedError(db_path)
    if "not a database" in detail or "malformed" in detail or "corrupt" in detail:
        return LedgerCorruptError(db_path)
    return LedgerUnavailableError(db_path, str(error))


class LedgerStore:
    """
    SQLite-backed transaction ledger.

    Provides:
    - Transaction inserts (used by imports and tests)
    - Range queries for the recurring detector
    - Recurring cache replace/read
    - Ledger statistics

    Thread-safe for single-writer scenarios.
    """

    def __init__(self, db_path: Path | str, run_migrations: bool = True):
        """
        Initialize ledger store.

        Args:
            db_path: Path to SQLite database file
            run_migrations: Whether to run pending migrations (default True)
        """
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LedgerUnavailableError(self.db_path, str(e)) from e
        if run_migrations:
            self._run_migrations()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise map_sqlite_error(self.db_path, e) from e
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions.

        sqlite3 errors leave as LedgerError subclasses.
        """
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise map_sqlite_error(self.db_path, e) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _run_migrations(self) -> None:
        """Run pending database migrations."""
        from .migrations import MigrationRunner

        conn = self._get_connection()
        try:
            runner = MigrationRunner(conn)
            runner.run_pending()
        except sqlite3.Error as e:
            raise map_sqlite_error(self.db_path, e) from e
        finally:
            conn.close()

    # Transaction methods

    def insert_transactions(self, records: Iterable[TransactionRecord]) -> int:
        """Insert ledger rows.

        Returns:
            Number of rows inserted.
        """
        rows = [
            (
                record.account_key,
                format_iso_date(record.posted_at),
                str(record.amount),
                record.currency,
                record.description,
                record.merchant,
            )
            for record in records
        ]
        if not rows:
            return 0

        with self._transaction() as conn:
            conn.executemany(
                """
                INSERT INTO transactions
                    (account_key, posted_at, amount, currency, description, merchant)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                rows,
            )

        logger.debug("Inserted %d transaction(s) into %s", len(rows), self.db_path)
        return len(rows)

    def fetch_transactions(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[TransactionRecord]:
        """Fetch transactions posted within [from_date, to_date] (open ends allowed).

        Rows with an unusable date or amount are skipped with a warning.
        Zero amounts are skipped.
        """
        from_bound = format_iso_date(from_date) if from_date else None
        to_bound = format_iso_date(to_date) if to_date else None

        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT txn_id, account_key, posted_at, amount, currency, description, merchant
                FROM transactions
                WHERE (? IS NULL OR posted_at >= ?)
                  AND (? IS NULL OR posted_at <= ?)
                ORDER BY account_key ASC, currency ASC, posted_at ASC, txn_id ASC
            """,
                (from_bound, from_bound, to_bound, to_bound),
            ).fetchall()

        records: list[TransactionRecord] = []
        for row in rows:
            posted_at = parse_transaction_date(row["posted_at"])
            if posted_at is None:
                logger.warning("Skipping txn %s: unusable posted_at %r", row["txn_id"], row["posted_at"])
                continue
            try:
                amount = Decimal(row["amount"])
            except (InvalidOperation, TypeError):
                logger.warning("Skipping txn %s: unusable amount %r", row["txn_id"], row["amount"])
                continue
            if amount == 0:
                continue

            records.append(
                TransactionRecord(
                    account_key=row["account_key"],
                    posted_at=posted_at,
                    amount=amount,
                    currency=row["currency"],
                    description=row["description"],
                    merchant=row["merchant"],
                )
            )

        return records

    def get_data_range(self) -> dict[str, str | None]:
        """Earliest and latest posted_at across the whole ledger."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT MIN(posted_at) AS earliest, MAX(posted_at) AS latest FROM transactions"
            ).fetchone()

        return {
            "earliest": row["earliest"] if row else None,
            "latest": row["latest"] if row else None,
        }

    # === Recurring Cache Methods ===

    def replace_recurring_cache(self, result: RecurringResult, refreshed_at: str) -> int:
        """Replace the recurring cache with a fresh detection result.

        Returns:
            Number of cached rows.
        """
        with self._transaction() as conn:
            conn.execute("DELETE FROM recurring_materialized")
            for position, pattern in enumerate(result.patterns):
                payload = pattern.to_dict()
                conn.execute(
                    """
                    INSERT INTO recurring_materialized (
                        group_key, position, policy_version, pattern_json,
                        counterparty, cadence, next_expected_at, score, is_active
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    (
                        pattern.group_key,
                        position,
                        result.policy_version,
                        json.dumps(payload, sort_keys=True),
                        payload["counterparty"],
                        payload["cadence"],
                        payload["next_expected_at"],
                        payload["score"],
                        1 if pattern.is_active else 0,
                    ),
                )
            conn.execute(
                """
                INSERT INTO cache_metadata (name, policy_version, refreshed_at, row_count)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    policy_version = excluded.policy_version,
                    refreshed_at = excluded.refreshed_at,
                    row_count = excluded.row_count
            """,
                (RECURRING_CACHE_NAME, result.policy_version, refreshed_at, len(result.patterns)),
            )

        return len(result.patterns)

    def get_recurring_cache(self) -> list[dict[str, Any]]:
        """Cached pattern rows in their stored output order."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT pattern_json FROM recurring_materialized ORDER BY position ASC"
            ).fetchall()
        return [json.loads(row["pattern_json"]) for row in rows]

    def get_cache_metadata(self) -> dict[str, Any] | None:
        """Refresh metadata for the recurring cache, or None if never refreshed."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT policy_version, refreshed_at, row_count FROM cache_metadata WHERE name = ?",
                (RECURRING_CACHE_NAME,),
            ).fetchone()
        if row is None:
            return None
        return {
            "policy_version": row["policy_version"],
            "refreshed_at": row["refreshed_at"],
            "row_count": row["row_count"],
        }

    def get_stats(self) -> dict[str, Any]:
        """Get ledger statistics."""
        with self._transaction() as conn:
            txns = conn.execute("SELECT COUNT(*) as count FROM transactions").fetchone()
            accounts = conn.execute(
                "SELECT COUNT(DISTINCT account_key) as count FROM transactions"
            ).fetchone()
            cached = conn.execute(
                "SELECT COUNT(*) as count FROM recurring_materialized"
            ).fetchone()

        metadata = self.get_cache_metadata()
        data_range = self.get_data_range()
        return {
            "transactions_total": txns["count"] if txns else 0,
            "accounts_total": accounts["count"] if accounts else 0,
            "recurring_cached": cached["count"] if cached else 0,
            "cache_refreshed_at": metadata["refreshed_at"] if metadata else None,
            "cache_policy_version": metadata["policy_version"] if metadata else None,
            "earliest": data_range["earliest"],
            "latest": data_range["latest"],
        }
