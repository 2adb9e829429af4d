"""
Migration 001: Add transactions table.

Validated ledger rows consumed by the recurring detector.
"""

import sqlite3

VERSION = 1
NAME = "transactions"


def upgrade(conn: sqlite3.Connection) -> None:
    """Create transactions table."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            txn_id INTEGER PRIMARY KEY AUTOINCREMENT,
            account_key TEXT NOT NULL,
            posted_at TEXT NOT NULL,  -- YYYY-MM-DD
            amount TEXT NOT NULL,  -- signed decimal string
            currency TEXT NOT NULL,
            description TEXT NOT NULL,
            merchant TEXT
        )
    """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_transactions_posted_at ON transactions(posted_at)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_transactions_account "
        "ON transactions(account_key, currency)"
    )


def downgrade(conn: sqlite3.Connection) -> None:
    """Remove transactions table."""
    conn.execute("DROP TABLE IF EXISTS transactions")
