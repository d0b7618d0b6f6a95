"""Unit tests for the data layer (database, repository, models, settings)."""

import json
import sqlite3
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pomodoro_friends.config import DEFAULT_CONFIG, TimerSettings, load_config, load_settings, save_config
from pomodoro_friends.data.database import Database, SCHEMA_SQL
from pomodoro_friends.data.models import SessionKind, SessionRecord, UnlockedAchievement
from pomodoro_friends.data.repository import Repository


@pytest.fixture
def repo():
    """Create an in-memory database for testing."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return Repository(conn)


def _record(ts: int, completed: bool = True, minutes: int = 25) -> SessionRecord:
    return SessionRecord.create(ts, SessionKind.TOMATO, minutes, completed)


class TestSessionRecord:
    def test_create_mints_unique_ids(self):
        a = _record(1000)
        b = _record(1000)
        assert a.id != b.id
        assert len(a.id) == 32

    def test_records_are_immutable(self):
        r = _record(1000)
        with pytest.raises(Exception):
            r.completed = False

    def test_kind_helpers(self):
        assert _record(1, completed=True).is_completed_tomato
        assert _record(1, completed=False).is_interrupted_tomato
        flow = SessionRecord.create(1, SessionKind.FLOW, 40, True)
        assert not flow.is_completed_tomato
        assert not flow.is_interrupted_tomato


class TestDatabase:
    def test_connect_creates_schema(self, tmp_path):
        db = Database(db_path=tmp_path / "test.db")
        conn = db.connect()
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"session_records", "unlocked_achievements"} <= tables
        assert db.connect() is conn
        db.close()
        assert db.conn is None

    def test_history_survives_reopen(self, tmp_path):
        path = tmp_path / "test.db"
        db = Database(db_path=path)
        Repository(db.connect()).append_record(_record(5000))
        db.close()

        db2 = Database(db_path=path)
        history = Repository(db2.connect()).load_history()
        db2.close()
        assert len(history) == 1
        assert history[0].timestamp == 5000


class TestHistory:
    def test_empty_history(self, repo: Repository):
        assert repo.load_history() == []
        assert repo.count_records() == 0

    def test_append_and_load_roundtrip(self, repo: Repository):
        r = _record(1_700_000_000_000, completed=False, minutes=7)
        repo.append_record(r)
        assert repo.load_history() == [r]

    def test_insertion_order_kept_for_equal_timestamps(self, repo: Repository):
        batch = [_record(1000) for _ in range(3)]
        for r in batch:
            repo.append_record(r)
        assert [r.id for r in repo.load_history()] == [r.id for r in batch]

    def test_append_and_persist_returns_full_history(self, repo: Repository):
        repo.append_record(_record(1000))
        history = repo.append_and_persist(_record(2000))
        assert len(history) == 2
        assert history[-1].timestamp == 2000

    def test_duplicate_id_rejected(self, repo: Repository):
        r = _record(1000)
        repo.append_record(r)
        with pytest.raises(sqlite3.IntegrityError):
            repo.append_record(r)


class TestUnlocked:
    def test_persist_replaces_set(self, repo: Repository):
        repo.persist_unlocked([UnlockedAchievement("QTY_1", 10)])
        repo.persist_unlocked([
            UnlockedAchievement("QTY_1", 10),
            UnlockedAchievement("CONT_SESSION_2", 20),
        ])
        ids = [u.id for u in repo.load_unlocked()]
        assert ids == ["QTY_1", "CONT_SESSION_2"]

    def test_persist_empty_clears(self, repo: Repository):
        repo.persist_unlocked([UnlockedAchievement("QTY_1", 10)])
        repo.persist_unlocked([])
        assert repo.load_unlocked() == []


class TestExportAndReset:
    def test_export_csv(self, repo: Repository):
        r = _record(1234, completed=False, minutes=3)
        repo.append_record(r)
        csv_text = repo.export_history_csv()
        lines = csv_text.strip().split("\n")
        assert lines[0] == "id,timestamp_ms,kind,duration_minutes,completed"
        assert lines[1] == f"{r.id},1234,TOMATO,3,0"

    def test_export_empty(self, repo: Repository):
        assert repo.export_history_csv() == ""

    def test_reset_all_data(self, repo: Repository):
        repo.append_record(_record(1000))
        repo.persist_unlocked([UnlockedAchievement("QTY_1", 10)])
        repo.reset_all_data()
        assert repo.count_records() == 0
        assert repo.load_unlocked() == []


class TestSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.json") == DEFAULT_CONFIG

    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        save_config({"daily_quota": 10, "session_minutes": 50}, path)
        settings = load_settings(path)
        assert settings.daily_quota == 10
        assert settings.session_seconds == 3000
        assert settings.base_rest_minutes == 5

    def test_bad_json_falls_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_settings(path) == TimerSettings()

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
        assert load_settings(path) == TimerSettings()
