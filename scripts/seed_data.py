"""
Seed Data Generator — fills the history with realistic tomatoes for demos.

Run: python scripts/seed_data.py [days] [--clear]
"""

import logging
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pomodoro_friends.config import load_settings
from pomodoro_friends.data.database import Database
from pomodoro_friends.data.models import SessionKind, SessionRecord
from pomodoro_friends.data.repository import Repository
from pomodoro_friends.services.achievements import AchievementEngine
from pomodoro_friends.services.clock import to_ms
from pomodoro_friends.services.ledger import SessionLedger


def generate_day(day: datetime, session_minutes: int) -> list:
    """3-8 tomatoes between 08:00 and 22:00, roughly one in seven interrupted."""
    records = []
    cursor = day.replace(hour=random.randint(8, 11), minute=random.randint(0, 59), second=0, microsecond=0)
    for _ in range(random.randint(3, 8)):
        if random.random() < 0.15:
            minutes = random.randint(2, session_minutes - 1)
            cursor += timedelta(minutes=minutes)
            records.append(SessionRecord.create(to_ms(cursor), SessionKind.TOMATO, minutes, False))
        else:
            cursor += timedelta(minutes=session_minutes)
            records.append(SessionRecord.create(to_ms(cursor), SessionKind.TOMATO, session_minutes, True))
        # rest + idle gap before the next one
        cursor += timedelta(minutes=random.choice([5, 5, 10, 30, 60]))
        if cursor.hour >= 22:
            break
    return records


def seed(days: int = 14, clear: bool = False) -> None:
    settings = load_settings()
    db = Database()
    db.connect()
    repo = Repository(db.conn)
    ledger = SessionLedger(repo)
    engine = AchievementEngine(repo)

    if clear:
        ledger.clear()
        engine.reset()

    # ── Generate history, oldest day first ──────────────────────────────
    today = datetime.now()
    records = []
    for offset in range(days - 1, 0, -1):
        records.extend(generate_day(today - timedelta(days=offset), settings.session_minutes))
    ledger.extend(records)

    # ── Unlock whatever the new history earns ───────────────────────────
    newly = engine.evaluate(ledger.all())

    db.close()
    print(f"Seeded {len(records)} records over {days - 1} past days; "
          f"{len(newly)} achievements unlocked.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    count = int(args[0]) if args else 14
    seed(count, clear="--clear" in sys.argv)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this script does:
#   Writes a couple of weeks of plausible tomatoes (3-8 a day, some
#   interrupted) so the stats tab and achievements have something to show.
#
# Key points:
#   - Goes through SessionLedger.extend(), not raw SQL, so seeded data is
#     exactly what the app itself would have written.
#   - Runs AchievementEngine.evaluate() once at the end: the same "evaluate
#     after the batch of writes" rule the timer follows.
#   - Today is left empty so the timer's daily quota starts fresh.
