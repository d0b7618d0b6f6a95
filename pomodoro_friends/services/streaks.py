"""
Streak Calculator — pure functions over a history snapshot.

Nothing here touches storage or the clock; callers pass the reference date.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import Sequence

from pomodoro_friends.data.models import SessionKind, SessionRecord
from pomodoro_friends.services.clock import is_same_day, local_date


def session_streak(history: Sequence[SessionRecord], reference_date: date) -> int:
    """
    Longest unbroken run of completed tomatoes on reference_date.

    An interrupted tomato resets the running count; the result is the
    maximum reached during the day, not the count at the end of it.
    """
    day_records = sorted(
        (r for r in history
         if r.kind is SessionKind.TOMATO and local_date(r.timestamp) == reference_date),
        key=lambda r: r.timestamp,
    )

    best = 0
    current = 0
    for record in day_records:
        if record.completed:
            current += 1
            best = max(best, current)
        else:
            current = 0
    return best


def day_streak(history: Sequence[SessionRecord], today: date) -> int:
    """
    Consecutive days, walking back from today, with >= 1 completed tomato.

    Today not having a tomato yet doesn't break the streak; the walk just
    starts from yesterday. Any other empty day ends it.
    """
    if not history:
        return 0
    days = {local_date(r.timestamp) for r in history if r.is_completed_tomato}

    streak = 0
    check = today
    while True:
        if check in days:
            streak += 1
            check -= timedelta(days=1)
        elif check == today:
            check -= timedelta(days=1)
        else:
            break
    return streak


def daily_completed_counts(history: Sequence[SessionRecord]) -> Counter:
    """date -> number of completed tomatoes."""
    return Counter(local_date(r.timestamp) for r in history if r.is_completed_tomato)


def completed_tomatoes_on(history: Sequence[SessionRecord], day: date) -> int:
    return sum(1 for r in history if r.is_completed_tomato and is_same_day(r.timestamp, day))


def interruptions_on(history: Sequence[SessionRecord], day: date) -> int:
    return sum(1 for r in history if r.is_interrupted_tomato and is_same_day(r.timestamp, day))
