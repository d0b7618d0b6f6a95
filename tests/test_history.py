"""Unit tests for the session ledger and the streak calculator."""

import sqlite3
import pytest
from datetime import date, datetime, timedelta
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pomodoro_friends.data.database import SCHEMA_SQL
from pomodoro_friends.data.models import SessionKind, SessionRecord
from pomodoro_friends.data.repository import Repository
from pomodoro_friends.services.clock import to_ms
from pomodoro_friends.services.ledger import SessionLedger
from pomodoro_friends.services.streaks import (
    completed_tomatoes_on,
    daily_completed_counts,
    day_streak,
    interruptions_on,
    session_streak,
)

TODAY = date(2024, 5, 15)


@pytest.fixture
def repo():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return Repository(conn)


def tomato(day: date, hour: int, minute: int = 0, completed: bool = True,
           kind: SessionKind = SessionKind.TOMATO) -> SessionRecord:
    ts = to_ms(datetime(day.year, day.month, day.day, hour, minute))
    return SessionRecord.create(ts, kind, 25 if completed else 10, completed)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


class TestSessionLedger:
    def test_loads_existing_history(self, repo):
        repo.append_record(tomato(TODAY, 9))
        ledger = SessionLedger(repo)
        assert len(ledger) == 1

    def test_load_failure_leaves_empty_ledger(self, repo):
        repo.conn.close()
        ledger = SessionLedger(repo)
        assert ledger.all() == ()

    def test_append_returns_snapshot(self, repo):
        ledger = SessionLedger(repo)
        r = tomato(TODAY, 9)
        snap = ledger.append(r)
        assert snap == (r,)
        assert isinstance(ledger.all(), tuple)
        assert repo.load_history() == [r]

    def test_extend_keeps_order(self, repo):
        ledger = SessionLedger(repo)
        batch = [tomato(TODAY, 9), tomato(TODAY, 10), tomato(TODAY, 11)]
        ledger.extend(batch)
        assert [r.id for r in ledger.all()] == [r.id for r in batch]

    def test_storage_failure_keeps_record_in_memory(self, repo):
        ledger = SessionLedger(repo)
        errors = []
        ledger.on_storage_error = errors.append
        repo.conn.close()

        r = tomato(TODAY, 9)
        snap = ledger.append(r)

        assert snap == (r,)
        assert len(errors) == 1
        assert isinstance(errors[0], sqlite3.Error)

    def test_replicator_called_and_failures_swallowed(self, repo):
        seen = []

        def flaky(record):
            seen.append(record.id)
            raise ConnectionError("offline")

        ledger = SessionLedger(repo, replicator=flaky)
        r = tomato(TODAY, 9)
        ledger.append(r)
        assert seen == [r.id]
        assert len(ledger) == 1
        assert repo.count_records() == 1

    def test_clear(self, repo):
        ledger = SessionLedger(repo)
        ledger.append(tomato(TODAY, 9))
        ledger.clear()
        assert len(ledger) == 0
        assert repo.count_records() == 0


class TestSessionStreak:
    def test_empty(self):
        assert session_streak([], TODAY) == 0

    def test_interruption_resets_run(self):
        history = [
            tomato(TODAY, 9),
            tomato(TODAY, 10),
            tomato(TODAY, 11, completed=False),
            tomato(TODAY, 12),
        ]
        assert session_streak(history, TODAY) == 2

    def test_maximum_not_final_run(self):
        history = [tomato(TODAY, h) for h in (8, 9, 10)]
        history.append(tomato(TODAY, 11, completed=False))
        history.append(tomato(TODAY, 12))
        assert session_streak(history, TODAY) == 3

    def test_sorted_by_timestamp(self):
        history = [
            tomato(TODAY, 12),
            tomato(TODAY, 9),
            tomato(TODAY, 10, completed=False),
            tomato(TODAY, 11),
        ]
        # time order: 9 ok, 10 broken, 11 ok, 12 ok
        assert session_streak(history, TODAY) == 2

    def test_other_days_and_flow_records_ignored(self):
        history = [
            tomato(days_ago(1), 9),
            tomato(days_ago(1), 10),
            tomato(days_ago(1), 11),
            tomato(TODAY, 9),
            tomato(TODAY, 9, 30, completed=False, kind=SessionKind.FLOW),
            tomato(TODAY, 10),
        ]
        assert session_streak(history, TODAY) == 2


class TestDayStreak:
    def test_empty(self):
        assert day_streak([], TODAY) == 0

    def test_consecutive_days_including_today(self):
        history = [tomato(TODAY, 9), tomato(days_ago(1), 9), tomato(days_ago(2), 9)]
        assert day_streak(history, TODAY) == 3

    def test_today_missing_does_not_break(self):
        history = [tomato(days_ago(1), 9), tomato(days_ago(2), 9)]
        assert day_streak(history, TODAY) == 2

    def test_today_and_yesterday_missing(self):
        history = [tomato(days_ago(2), 9), tomato(days_ago(3), 9)]
        assert day_streak(history, TODAY) == 0

    def test_gap_ends_streak(self):
        history = [tomato(TODAY, 9), tomato(days_ago(1), 9), tomato(days_ago(3), 9)]
        assert day_streak(history, TODAY) == 2

    def test_interrupted_only_day_does_not_count(self):
        history = [tomato(TODAY, 9), tomato(days_ago(1), 9, completed=False), tomato(days_ago(2), 9)]
        assert day_streak(history, TODAY) == 1


class TestDailyCounts:
    def test_counts(self):
        history = [
            tomato(TODAY, 9),
            tomato(TODAY, 10),
            tomato(TODAY, 11, completed=False),
            tomato(days_ago(1), 9),
        ]
        counts = daily_completed_counts(history)
        assert counts[TODAY] == 2
        assert counts[days_ago(1)] == 1
        assert completed_tomatoes_on(history, TODAY) == 2
        assert interruptions_on(history, TODAY) == 1
