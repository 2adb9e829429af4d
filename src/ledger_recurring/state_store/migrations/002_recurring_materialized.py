"""
Migration 002: Add recurring_materialized table.

Optional cache of the last full-window detection. Rows are replaced as a
whole on refresh and never edited individually.
"""

import sqlite3

VERSION = 2
NAME = "recurring_materialized"


def upgrade(conn: sqlite3.Connection) -> None:
    """Create recurring_materialized and cache metadata tables."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS recurring_materialized (
            group_key TEXT PRIMARY KEY,
            position INTEGER NOT NULL,  -- output order
            policy_version TEXT NOT NULL,
            pattern_json TEXT NOT NULL,
            counterparty TEXT NOT NULL,
            cadence TEXT NOT NULL,
            next_expected_at TEXT,
            score TEXT NOT NULL,
            is_active INTEGER NOT NULL CHECK (is_active IN (0, 1))
        )
    """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS cache_metadata (
            name TEXT PRIMARY KEY,
            policy_version TEXT NOT NULL,
            refreshed_at TEXT NOT NULL,
            row_count INTEGER NOT NULL
        )
    """
    )


def downgrade(conn: sqlite3.Connection) -> None:
    """Remove recurring cache tables."""
    conn.execute("DROP TABLE IF EXISTS cache_metadata")
    conn.execute("DROP TABLE IF EXISTS recurring_materialized")
