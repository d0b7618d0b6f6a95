"""Unit tests for the clock and shared time math."""

import pytest
from datetime import date, datetime
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pomodoro_friends.services.clock import (
    ManualClock,
    SystemClock,
    days_in_month,
    format_clock,
    format_duration,
    hour_of_day,
    is_same_day,
    local_date,
    seconds_until,
    start_of_week,
    to_ms,
    whole_seconds_since,
)


class TestClocks:
    def test_system_clock_is_ms(self):
        assert SystemClock().now() > 1_600_000_000_000

    def test_manual_clock(self):
        clock = ManualClock(1000)
        clock.advance(2.5)
        assert clock.now() == 3500
        clock.set(10)
        assert clock.now() == 10

    def test_manual_clock_at(self):
        when = datetime(2024, 5, 15, 23, 30)
        clock = ManualClock.at(when)
        assert local_date(clock.now()) == date(2024, 5, 15)
        assert hour_of_day(clock.now()) == 23
        assert is_same_day(clock.now(), date(2024, 5, 15))
        clock.advance(60 * 60)
        assert not is_same_day(clock.now(), date(2024, 5, 15))


class TestAnchorMath:
    def test_rounds_up(self):
        assert seconds_until(10_000, 8_500) == 2

    def test_never_negative(self):
        assert seconds_until(1_000, 5_000) == 0

    def test_elapsed_floors(self):
        assert whole_seconds_since(1_000, 3_999) == 2
        assert whole_seconds_since(5_000, 1_000) == 0


class TestCalendar:
    def test_start_of_week_is_monday(self):
        assert start_of_week(date(2024, 5, 15)) == date(2024, 5, 13)
        assert start_of_week(date(2024, 5, 13)) == date(2024, 5, 13)
        assert start_of_week(date(2024, 5, 19)) == date(2024, 5, 13)

    @pytest.mark.parametrize("day,count", [
        (date(2024, 2, 10), 29),
        (date(2023, 2, 10), 28),
        (date(2024, 4, 1), 30),
    ])
    def test_days_in_month(self, day, count):
        days = days_in_month(day)
        assert len(days) == count
        assert days[0].day == 1


class TestFormatting:
    def test_format_clock(self):
        assert format_clock(1500) == "25:00"
        assert format_clock(65) == "01:05"
        assert format_clock(-3) == "00:00"

    def test_format_duration(self):
        assert format_duration(45) == "45m"
        assert format_duration(125) == "2h 5m"

    def test_to_ms_roundtrip_date(self):
        assert local_date(to_ms(datetime(2024, 1, 1, 0, 0))) == date(2024, 1, 1)
