"""
Clock and shared time math.

The Clock is the only true external dependency of the timer core. All
countdowns are stored as absolute anchors (ms since epoch) and re-derived
from now(), so a missed tick never compounds into drift.
"""

from __future__ import annotations

import calendar
import math
import time
from datetime import date, datetime, timedelta
from typing import List


class SystemClock:
    """Wall-clock time in milliseconds since the epoch."""

    def now(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """A clock that only moves when told to. Used by tests and dev tooling."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = int(start_ms)

    @classmethod
    def at(cls, when: datetime) -> "ManualClock":
        return cls(to_ms(when))

    def now(self) -> int:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += int(seconds * 1000)

    def set(self, ms: int) -> None:
        self._now = int(ms)


# ── Conversions ─────────────────────────────────────────────────────────────

def to_ms(when: datetime) -> int:
    """Local (naive) or aware datetime -> ms since epoch."""
    return int(when.timestamp() * 1000)


def local_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000)


def local_date(ms: int) -> date:
    return local_datetime(ms).date()


def hour_of_day(ms: int) -> int:
    return local_datetime(ms).hour


def is_same_day(ms: int, day: date) -> bool:
    return local_date(ms) == day


# ── Anchor math ─────────────────────────────────────────────────────────────

def seconds_until(anchor_ms: int, now_ms: int) -> int:
    """Whole seconds left before anchor_ms, rounded up, never negative."""
    return max(0, math.ceil((anchor_ms - now_ms) / 1000))


def whole_seconds_since(start_ms: int, now_ms: int) -> int:
    return max(0, (now_ms - start_ms) // 1000)


# ── Calendar helpers ────────────────────────────────────────────────────────

def start_of_week(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


def days_in_month(day: date) -> List[date]:
    _, count = calendar.monthrange(day.year, day.month)
    return [date(day.year, day.month, d) for d in range(1, count + 1)]


# ── Display helpers (used by the Qt shell only) ─────────────────────────────

def format_clock(total_seconds: int) -> str:
    minutes, seconds = divmod(max(0, int(total_seconds)), 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_duration(minutes: int) -> str:
    h, m = divmod(int(minutes), 60)
    if h > 0:
        return f"{h}h {m}m"
    return f"{m}m"
