"""Unit tests for the achievement catalog and rule engine."""

import sqlite3
import pytest
from datetime import date, datetime, timedelta
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pomodoro_friends.data.database import SCHEMA_SQL
from pomodoro_friends.data.models import SessionKind, SessionRecord
from pomodoro_friends.data.repository import Repository
from pomodoro_friends.services.achievements import AchievementEngine
from pomodoro_friends.services.catalog import (
    ACHIEVEMENTS_LIST,
    AchievementCategory,
    AchievementDefinition,
    Progress,
    quantity,
)
from pomodoro_friends.services.clock import ManualClock, to_ms

NOW = datetime(2024, 5, 15, 12, 0)  # a Wednesday
TODAY = NOW.date()
MONDAY = date(2024, 5, 13)
FRIDAY = date(2024, 5, 10)
SATURDAY = date(2024, 5, 11)


@pytest.fixture
def repo():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return Repository(conn)


@pytest.fixture
def clock():
    return ManualClock.at(NOW)


@pytest.fixture
def engine(repo, clock):
    return AchievementEngine(repo, clock=clock)


def tomato(day: date, hour: int, minute: int = 0, completed: bool = True) -> SessionRecord:
    ts = to_ms(datetime(day.year, day.month, day.day, hour, minute))
    return SessionRecord.create(ts, SessionKind.TOMATO, 25 if completed else 5, completed)


def day_of(day: date, count: int, start_hour: int = 9) -> list:
    return [tomato(day, start_hour + i // 2, (i % 2) * 30) for i in range(count)]


def ids(definitions) -> set:
    return {d.id for d in definitions}


class TestCatalog:
    def test_ids_unique(self):
        all_ids = [d.id for d in ACHIEVEMENTS_LIST]
        assert len(all_ids) == len(set(all_ids))

    def test_every_category_present(self):
        assert {d.category for d in ACHIEVEMENTS_LIST} == set(AchievementCategory)

    def test_tiers_in_range(self):
        assert all(1 <= d.tier <= 7 for d in ACHIEVEMENTS_LIST)

    def test_empty_history_unlocks_nothing(self):
        assert not any(d.condition([], TODAY) for d in ACHIEVEMENTS_LIST)

    def test_progress_ratio(self):
        assert Progress(3, 10).ratio == pytest.approx(0.3)
        assert Progress(30, 10).ratio == 1.0
        assert Progress(1, 0).ratio == 0.0


class TestEngine:
    def test_first_tomato(self, engine):
        newly = engine.evaluate([tomato(TODAY, 9)])
        assert ids(newly) == {"QTY_1"}
        assert engine.is_unlocked("QTY_1")

    def test_evaluate_is_idempotent(self, engine):
        history = [tomato(TODAY, 9)]
        engine.evaluate(history)
        assert engine.evaluate(history) == []

    def test_unlocked_at_uses_clock(self, engine, clock):
        engine.evaluate([tomato(TODAY, 9)])
        assert engine.unlocked()[0].unlocked_at == clock.now()

    def test_unlocks_persist_across_instances(self, repo, clock, engine):
        engine.evaluate([tomato(TODAY, 9)])
        again = AchievementEngine(repo, clock=clock)
        assert again.is_unlocked("QTY_1")
        assert again.evaluate([tomato(TODAY, 9)]) == []

    def test_results_in_catalog_order(self, engine):
        newly = engine.evaluate(day_of(TODAY, 3))
        order = [d.id for d in ACHIEVEMENTS_LIST]
        positions = [order.index(d.id) for d in newly]
        assert positions == sorted(positions)

    def test_failing_rule_is_isolated(self, repo, clock):
        def boom(history, today):
            raise ZeroDivisionError

        broken = AchievementDefinition(
            id="BROKEN_RULE",
            category=AchievementCategory.FUN,
            tier=1,
            icon="ICON_BUG",
            condition=boom,
            progress=lambda h, t: Progress(0, 1),
        )
        engine = AchievementEngine(repo, clock=clock, catalog=[broken, quantity(1, 1, "ICON_SPROUT")])
        newly = engine.evaluate([tomato(TODAY, 9)])
        assert ids(newly) == {"QTY_1"}
        assert not engine.is_unlocked("BROKEN_RULE")

    def test_storage_failure_keeps_memory_state(self, repo, clock):
        engine = AchievementEngine(repo, clock=clock)
        errors = []
        engine.on_storage_error = errors.append
        repo.conn.close()

        newly = engine.evaluate([tomato(TODAY, 9)])
        assert ids(newly) == {"QTY_1"}
        assert engine.is_unlocked("QTY_1")
        assert len(errors) == 1

    def test_progress_is_read_only(self, engine):
        history = day_of(TODAY, 3)
        assert engine.progress("QTY_10", history) == Progress(3, 10)
        assert not engine.is_unlocked("QTY_10")

    def test_reset(self, engine, repo):
        engine.evaluate([tomato(TODAY, 9)])
        engine.reset()
        assert engine.unlocked() == []
        assert repo.load_unlocked() == []


class TestRules:
    def test_session_run_today(self, engine):
        history = [tomato(TODAY, 9), tomato(TODAY, 10, completed=False), tomato(TODAY, 11), tomato(TODAY, 12)]
        newly = ids(engine.evaluate(history))
        assert "CONT_SESSION_2" in newly
        assert "CONT_SESSION_4" not in newly

    def test_session_run_on_past_day_not_counted(self, engine):
        history = day_of(TODAY - timedelta(days=1), 4)
        assert "CONT_SESSION_2" not in ids(engine.evaluate(history))

    def test_day_run(self, engine):
        history = [tomato(TODAY - timedelta(days=n), 9) for n in range(3)]
        assert "CONT_DAY_3" in ids(engine.evaluate(history))

    def test_growth_looks_at_any_day(self, engine):
        history = day_of(TODAY - timedelta(days=20), 5)
        newly = ids(engine.evaluate(history))
        assert {"GROWTH_DAY_3", "GROWTH_DAY_5"} <= newly
        assert "GROWTH_DAY_8" not in newly

    def test_early_bird(self, engine):
        assert "HABIT_EARLY" in ids(engine.evaluate([tomato(TODAY, 7, 30)]))

    def test_early_window_is_half_open(self, engine):
        assert "HABIT_EARLY" not in ids(engine.evaluate([tomato(TODAY, 9, 0)]))

    def test_night_owl_wraps_midnight(self, repo, clock):
        assert "HABIT_NIGHT" in ids(AchievementEngine(repo, clock=clock).evaluate([tomato(TODAY, 2)]))

    def test_night_owl_excludes_four_am(self, engine):
        assert "HABIT_NIGHT" not in ids(engine.evaluate([tomato(TODAY, 4, 10)]))

    def test_flawless_day(self, engine):
        assert "HABIT_FLAWLESS_DAY" in ids(engine.evaluate(day_of(TODAY, 6)))

    def test_flawless_day_needs_more_than_five(self, engine):
        assert "HABIT_FLAWLESS_DAY" not in ids(engine.evaluate(day_of(TODAY, 5)))

    def test_flawless_day_broken_by_interruption(self, engine):
        history = day_of(TODAY, 7) + [tomato(TODAY, 20, completed=False)]
        assert "HABIT_FLAWLESS_DAY" not in ids(engine.evaluate(history))

    def test_monday_rule(self, engine):
        assert "FUN_MONDAY" in ids(engine.evaluate(day_of(MONDAY, 3)))

    def test_friday_rule_needs_five(self, engine):
        assert "FUN_FRIDAY" not in ids(engine.evaluate(day_of(FRIDAY, 4)))

    def test_weekend_rule(self, engine):
        assert "FUN_WEEKEND" in ids(engine.evaluate(day_of(SATURDAY, 4)))

    def test_interruptions_do_not_count_towards_quantity(self, engine):
        history = [tomato(TODAY, 9, completed=False)]
        assert engine.evaluate(history) == []
