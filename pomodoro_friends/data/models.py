"""
Data models for Pomodoro Friends.

Plain dataclasses that represent stored rows. Every layer (ledger, streaks,
achievements, stats, UI) speaks in these types instead of raw SQL rows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum


class SessionKind(Enum):
    """What kind of focus session produced a record."""
    TOMATO = "TOMATO"
    FLOW = "FLOW"


@dataclass(frozen=True)
class SessionRecord:
    """
    One completed or interrupted focus session.

    timestamp is the wall-clock instant (ms since epoch) the record was
    created, i.e. when the session ended, not when it started.
    completed is False for interruptions; duration_minutes then holds the
    partial minutes actually worked.
    """
    id: str
    timestamp: int
    kind: SessionKind
    duration_minutes: int
    completed: bool

    @classmethod
    def create(
        cls,
        timestamp: int,
        kind: SessionKind,
        duration_minutes: int,
        completed: bool,
    ) -> "SessionRecord":
        return cls(
            id=uuid.uuid4().hex,
            timestamp=timestamp,
            kind=kind,
            duration_minutes=duration_minutes,
            completed=completed,
        )

    @property
    def is_completed_tomato(self) -> bool:
        return self.completed and self.kind is SessionKind.TOMATO

    @property
    def is_interrupted_tomato(self) -> bool:
        return not self.completed and self.kind is SessionKind.TOMATO


@dataclass(frozen=True)
class UnlockedAchievement:
    """An achievement id and the instant (ms) it was first unlocked."""
    id: str
    unlocked_at: int


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Defines the two persisted shapes: SessionRecord (the append-only history
#   log) and UnlockedAchievement (the badge set).
#
# Key decisions:
#   - frozen=True: records are immutable once created. The ledger hands the
#     same objects to streaks, achievements and stats, so nobody can mutate
#     shared history by accident.
#   - Timestamps are int milliseconds, the same unit the Clock returns. Local
#     dates/hours are derived on demand (see services/clock.py).
#   - SessionRecord.create() mints a uuid so records can be replicated to a
#     remote store without id collisions.
#
# Interviewer-friendly talking points:
#   1. Event sourcing lite: every statistic and every badge is recomputed
#      from this log; there is no second counter that can drift.
#   2. Enum for kind instead of bare strings catches typos at import time.
