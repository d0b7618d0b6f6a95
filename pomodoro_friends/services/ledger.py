"""
Session History Ledger — the append-only log behind every statistic.

The ledger keeps the authoritative in-memory history and mirrors each append
to the Repository. Storage failures never lose the in-memory record and never
raise: they are logged and reported through on_storage_error.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Iterable, List, Optional, Tuple

from pomodoro_friends.data.models import SessionRecord
from pomodoro_friends.data.repository import Repository

logger = logging.getLogger(__name__)

Replicator = Callable[[SessionRecord], None]


class SessionLedger:
    """Append-only history with best-effort persistence and replication."""

    def __init__(self, repo: Repository, replicator: Optional[Replicator] = None) -> None:
        self.repo = repo
        self.replicator = replicator

        # Set by whoever wants to surface storage advisories (TimerService)
        self.on_storage_error: Optional[Callable[[Exception], None]] = None

        self._records: List[SessionRecord] = []
        self.load_error: Optional[sqlite3.Error] = None
        try:
            self._records = self.repo.load_history()
        except sqlite3.Error as e:
            logger.error("Could not load session history: %s", e)
            self.load_error = e
        logger.info("Ledger loaded with %d records.", len(self._records))

    # ── Public API ──────────────────────────────────────────────────────────

    def append(self, record: SessionRecord) -> Tuple[SessionRecord, ...]:
        """Append one record and return the new immutable snapshot."""
        self._records.append(record)
        try:
            self.repo.append_record(record)
        except sqlite3.Error as e:
            logger.warning("Record %s kept in memory only: %s", record.id, e)
            if self.on_storage_error:
                self.on_storage_error(e)
        self._replicate(record)
        return self.all()

    def extend(self, records: Iterable[SessionRecord]) -> Tuple[SessionRecord, ...]:
        """Append many records in order (history injection, seeding)."""
        for record in records:
            self.append(record)
        return self.all()

    def all(self) -> Tuple[SessionRecord, ...]:
        return tuple(self._records)

    def clear(self) -> None:
        """Administrative bulk clear. Not part of normal flow."""
        self._records.clear()
        try:
            self.repo.reset_all_data()
        except sqlite3.Error as e:
            logger.warning("Could not clear stored history: %s", e)
            if self.on_storage_error:
                self.on_storage_error(e)

    def __len__(self) -> int:
        return len(self._records)

    # ── Internal ────────────────────────────────────────────────────────────

    def _replicate(self, record: SessionRecord) -> None:
        if self.replicator is None:
            return
        try:
            self.replicator(record)
        except Exception as e:
            logger.warning("Remote sync skipped for %s: %s", record.id, e)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Owns the session history. The TimerService is its only writer; streaks,
#   achievements and stats read the tuple returned by all().
#
# Key points:
#   - Memory first, disk second: the record is appended in memory before the
#     INSERT, so a locked or missing DB file can't make the UI "forget" a
#     finished tomato mid-session.
#   - all() returns a tuple: consumers physically cannot append to the
#     snapshot they were handed.
#   - The replicator hook is where remote sync plugs in. It runs after the
#     local append and any exception is logged, never re-raised.
#
# Interviewer-friendly talking points:
#   1. Single writer + single thread means no locks are needed; the ordering
#      guarantee is simply "all appends of a batch finish before evaluate()".
#   2. The callback attribute (on_storage_error) mirrors how the UI subscribes
#      to engine events elsewhere in the app.
