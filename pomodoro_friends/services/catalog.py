"""
Achievement Catalog — the built-in list of badges and their rules.

Each definition pairs a condition with a progress function, both pure
functions of (history, today). Rules must be monotonic: once true for some
history they stay true as records are appended, which is what lets the
engine unlock incrementally and never take a badge back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Sequence

from pomodoro_friends.data.models import SessionKind, SessionRecord
from pomodoro_friends.services.clock import hour_of_day, local_date
from pomodoro_friends.services.streaks import (
    daily_completed_counts,
    day_streak,
    session_streak,
)

History = Sequence[SessionRecord]


class AchievementCategory(Enum):
    QUANTITY = "QUANTITY"
    CONTINUITY = "CONTINUITY"
    HABIT = "HABIT"
    GROWTH = "GROWTH"
    FUN = "FUN"


@dataclass(frozen=True)
class Progress:
    current: int
    total: int

    @property
    def ratio(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(1.0, self.current / self.total)


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    category: AchievementCategory
    tier: int  # 1 (red) .. 7 (purple)
    icon: str
    condition: Callable[[History, date], bool]
    progress: Callable[[History, date], Progress]


# ── Rule helpers ────────────────────────────────────────────────────────────

def _lifetime_tomatoes(history: History) -> int:
    return sum(1 for r in history if r.is_completed_tomato)


def _best_day(history: History) -> int:
    counts = daily_completed_counts(history)
    return max(counts.values()) if counts else 0


def _best_day_matching(history: History, weekdays: frozenset) -> int:
    counts = daily_completed_counts(history)
    return max((n for d, n in counts.items() if d.weekday() in weekdays), default=0)


def _in_window(hour: int, start: int, end: int) -> bool:
    """Half-open hour window [start, end); wraps past midnight when end < start."""
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def _has_completed_in_window(history: History, start: int, end: int) -> bool:
    return any(r.completed and _in_window(hour_of_day(r.timestamp), start, end) for r in history)


def _flawless_days(history: History, min_completed: int) -> List[date]:
    per_day = {}
    for r in history:
        if r.kind is not SessionKind.TOMATO:
            continue
        day = local_date(r.timestamp)
        done, broken = per_day.get(day, (0, 0))
        if r.completed:
            done += 1
        else:
            broken += 1
        per_day[day] = (done, broken)
    return [d for d, (done, broken) in per_day.items() if done > min_completed and broken == 0]


# ── Factories (one per rule shape) ──────────────────────────────────────────

def quantity(threshold: int, tier: int, icon: str) -> AchievementDefinition:
    return AchievementDefinition(
        id=f"QTY_{threshold}",
        category=AchievementCategory.QUANTITY,
        tier=tier,
        icon=icon,
        condition=lambda h, today: _lifetime_tomatoes(h) >= threshold,
        progress=lambda h, today: Progress(_lifetime_tomatoes(h), threshold),
    )


def session_run(length: int, tier: int, icon: str) -> AchievementDefinition:
    return AchievementDefinition(
        id=f"CONT_SESSION_{length}",
        category=AchievementCategory.CONTINUITY,
        tier=tier,
        icon=icon,
        condition=lambda h, today: session_streak(h, today) >= length,
        progress=lambda h, today: Progress(session_streak(h, today), length),
    )


def day_run(days: int, tier: int, icon: str) -> AchievementDefinition:
    return AchievementDefinition(
        id=f"CONT_DAY_{days}",
        category=AchievementCategory.CONTINUITY,
        tier=tier,
        icon=icon,
        condition=lambda h, today: day_streak(h, today) >= days,
        progress=lambda h, today: Progress(day_streak(h, today), days),
    )


def daily_rank(count: int, tier: int, icon: str) -> AchievementDefinition:
    return AchievementDefinition(
        id=f"GROWTH_DAY_{count}",
        category=AchievementCategory.GROWTH,
        tier=tier,
        icon=icon,
        condition=lambda h, today: _best_day(h) >= count,
        progress=lambda h, today: Progress(_best_day(h), count),
    )


def hour_window(ach_id: str, start: int, end: int, tier: int, icon: str) -> AchievementDefinition:
    return AchievementDefinition(
        id=ach_id,
        category=AchievementCategory.HABIT,
        tier=tier,
        icon=icon,
        condition=lambda h, today: _has_completed_in_window(h, start, end),
        progress=lambda h, today: Progress(int(_has_completed_in_window(h, start, end)), 1),
    )


def flawless_day(min_completed: int, tier: int, icon: str) -> AchievementDefinition:
    return AchievementDefinition(
        id="HABIT_FLAWLESS_DAY",
        category=AchievementCategory.HABIT,
        tier=tier,
        icon=icon,
        condition=lambda h, today: bool(_flawless_days(h, min_completed)),
        progress=lambda h, today: Progress(int(bool(_flawless_days(h, min_completed))), 1),
    )


def weekday_count(ach_id: str, weekdays: frozenset, count: int, tier: int, icon: str) -> AchievementDefinition:
    """weekdays uses date.weekday() numbering: Monday=0 .. Sunday=6."""
    return AchievementDefinition(
        id=ach_id,
        category=AchievementCategory.FUN,
        tier=tier,
        icon=icon,
        condition=lambda h, today: _best_day_matching(h, weekdays) >= count,
        progress=lambda h, today: Progress(_best_day_matching(h, weekdays), count),
    )


# ── The catalog ─────────────────────────────────────────────────────────────

ACHIEVEMENTS_LIST: List[AchievementDefinition] = [
    # Quantity
    quantity(1, 1, "ICON_SPROUT"),
    quantity(10, 1, "ICON_BASKET"),
    quantity(25, 2, "ICON_SEEDLING"),
    quantity(50, 2, "ICON_LEAF"),
    quantity(100, 3, "ICON_TOMATO"),
    quantity(250, 4, "ICON_CRATE"),
    quantity(500, 5, "ICON_CROWN"),
    quantity(1000, 6, "ICON_TROPHY"),
    quantity(2000, 6, "ICON_GEM"),
    quantity(5000, 7, "ICON_RAINBOW"),

    # Continuity within a day
    session_run(2, 1, "ICON_FIRE"),
    session_run(4, 2, "ICON_ZAP"),
    session_run(6, 3, "ICON_ROCKET"),
    session_run(8, 5, "ICON_TARGET"),

    # Continuity across days
    day_run(3, 1, "ICON_SEED"),
    day_run(7, 2, "ICON_TREE"),
    day_run(14, 3, "ICON_MEDAL"),
    day_run(30, 4, "ICON_CALENDAR"),
    day_run(60, 5, "ICON_MOUNTAIN"),
    day_run(100, 6, "ICON_STAR"),
    day_run(365, 7, "ICON_PLANET"),

    # Growth (best single day)
    daily_rank(3, 1, "ICON_HEART"),
    daily_rank(5, 2, "ICON_MUSCLE"),
    daily_rank(8, 3, "ICON_BOLT"),
    daily_rank(12, 5, "ICON_VOLCANO"),

    # Habit
    hour_window("HABIT_EARLY", 6, 9, 3, "ICON_SUN"),
    hour_window("HABIT_NIGHT", 23, 4, 3, "ICON_MOON"),
    flawless_day(5, 4, "ICON_SHIELD"),

    # Fun
    weekday_count("FUN_WEEKEND", frozenset({5, 6}), 4, 2, "ICON_BEACH"),
    weekday_count("FUN_MONDAY", frozenset({0}), 3, 2, "ICON_COFFEE"),
    weekday_count("FUN_FRIDAY", frozenset({4}), 5, 3, "ICON_PARTY"),
]


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Holds every badge as data: id, category, tier, icon key and two plain
#   functions. Titles/descriptions are looked up by id in the (external)
#   localization layer, so this module never contains display text.
#
# Key design decisions:
#   - Factories per rule shape (quantity, session_run, day_run, ...) keep
#     the list readable while still allowing arbitrary predicates. A single
#     "threshold" column could not express night-owl or flawless-day rules.
#   - Growth/Fun rules look at ANY day in the history, not just today, so a
#     history restored from another device unlocks what it should.
#   - Hour windows are half-open and can wrap midnight (23 -> 4).
#
# Interviewer-friendly talking points:
#   1. Monotonic rules are the contract that makes evaluation incremental.
#      The only rules that read `today` are the session-run and day-run
#      streaks, and for those the unlock is simply recorded the first time
#      they are reached.
#   2. Adding a badge is one line in ACHIEVEMENTS_LIST.
