"""
SQLite database initialization and connection management.

Single responsibility: own the connection and create tables.
All actual queries live in Repository.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Default DB lives at the repo root
DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "pomodoro_friends.db"

SCHEMA_SQL = """
-- Session history (append-only) ---------------------------------------------
CREATE TABLE IF NOT EXISTS session_records (
    seq              INTEGER PRIMARY KEY AUTOINCREMENT,
    id               TEXT    NOT NULL UNIQUE,
    timestamp_ms     INTEGER NOT NULL,
    kind             TEXT    NOT NULL,
    duration_minutes INTEGER NOT NULL,
    completed        INTEGER NOT NULL
);

-- Unlocked achievements -----------------------------------------------------
CREATE TABLE IF NOT EXISTS unlocked_achievements (
    achievement_id  TEXT    PRIMARY KEY,
    unlocked_at_ms  INTEGER NOT NULL
);

-- Indexes for common queries -------------------------------------------------
CREATE INDEX IF NOT EXISTS idx_records_timestamp ON session_records(timestamp_ms);
"""


class Database:
    """Thin wrapper around a SQLite connection."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.conn: Optional[sqlite3.Connection] = None

    # -- lifecycle -----------------------------------------------------------

    def connect(self) -> sqlite3.Connection:
        """Open (or return existing) connection and ensure schema exists."""
        if self.conn is not None:
            return self.conn
        logger.info("Connecting to SQLite at %s", self.db_path)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()
        return self.conn

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed.")

    # -- internal ------------------------------------------------------------

    def _create_tables(self) -> None:
        assert self.conn is not None
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()
        logger.info("Database schema ensured.")


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Opens the SQLite file and makes sure both tables exist on startup.
#
# Key pieces:
#   - session_records.seq: AUTOINCREMENT column that fixes insertion order.
#     Timestamps can tie (a batch of 3 tomatoes is written in the same
#     millisecond), so ORDER BY seq is the only reliable "append order".
#   - unlocked_achievements: one row per badge id, PRIMARY KEY makes a double
#     unlock impossible at the storage level too.
#
# Interviewer-friendly talking points:
#   1. CREATE IF NOT EXISTS keeps startup idempotent.
#   2. No check_same_thread=False: the whole app is single-threaded and
#      driven by the Qt event loop, so the default guard is a useful tripwire.
