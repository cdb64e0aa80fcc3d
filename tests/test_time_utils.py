"""Tests for clock-time helpers and half-open intervals."""

from datetime import date, time

import pytest

from studio_scheduler.core.exceptions import InvalidRangeError, ValidationError
from studio_scheduler.utils.time_utils import (
    TimeInterval,
    add_minutes,
    align_up,
    day_of_week,
    duration_minutes,
    format_minutes,
    format_time,
    intersect_intervals,
    iter_dates,
    merge_intervals,
    overlaps,
    parse_time,
    subtract_intervals,
    to_minutes,
)


class TestParsing:
    """Parsing and formatting clock times."""

    def test_parse_accepts_common_formats(self):
        assert parse_time("09:30") == time(9, 30)
        assert parse_time("09:30:00") == time(9, 30)
        assert parse_time(time(14, 5)) == time(14, 5)

    @pytest.mark.parametrize("value", ["9h30", "25:00", "", "noon"])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ValidationError):
            parse_time(value)

    def test_format(self):
        assert format_time(time(9, 0)) == "09:00"
        assert format_minutes(0) == "00:00"
        assert format_minutes(24 * 60) == "24:00"
        assert to_minutes("13:45") == 825


class TestArithmetic:
    """Adding durations without crossing midnight."""

    def test_end_time_from_duration(self):
        assert add_minutes(time(9, 0), 60) == time(10, 0)
        assert add_minutes("22:30", 89) == time(23, 59)

    def test_crossing_midnight_is_rejected(self):
        with pytest.raises(InvalidRangeError):
            add_minutes(time(23, 30), 60)
        with pytest.raises(InvalidRangeError):
            add_minutes(time(23, 0), 60)

    def test_duration(self):
        assert duration_minutes("09:00", "10:15") == 75

    def test_duration_requires_end_after_start(self):
        with pytest.raises(InvalidRangeError):
            duration_minutes("10:00", "10:00")
        with pytest.raises(ValidationError):
            duration_minutes("10:00", "09:00")

    def test_align_up(self):
        assert align_up(540, 15) == 540
        assert align_up(541, 15) == 555
        assert align_up(0, 30) == 0


class TestCalendar:

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(date(2025, 8, 31)) == 0  # Sunday
        assert day_of_week(date(2025, 9, 1)) == 1  # Monday
        assert day_of_week(date(2025, 9, 6)) == 6  # Saturday

    def test_iter_dates_is_inclusive(self):
        days = list(iter_dates(date(2025, 9, 1), date(2025, 9, 3)))
        assert days == [date(2025, 9, 1), date(2025, 9, 2), date(2025, 9, 3)]
        assert list(iter_dates(date(2025, 9, 2), date(2025, 9, 1))) == []


class TestIntervals:
    """Half-open [start, end) interval behaviour."""

    def test_overlap_is_half_open(self):
        morning = TimeInterval.from_times("09:00", "10:00")
        assert not morning.overlaps(TimeInterval.from_times("10:00", "10:30"))
        assert morning.overlaps(TimeInterval.from_times("09:30", "10:00"))

    @pytest.mark.parametrize("a,b", [
        ((540, 600), (570, 630)),
        ((540, 600), (600, 660)),
        ((540, 600), (480, 720)),
        ((0, 30), (900, 960)),
    ])
    def test_overlap_is_symmetric(self, a, b):
        first, second = TimeInterval(*a), TimeInterval(*b)
        assert overlaps(first, second) == overlaps(second, first)

    def test_invalid_interval(self):
        with pytest.raises(InvalidRangeError):
            TimeInterval(600, 540)
        with pytest.raises(InvalidRangeError):
            TimeInterval(0, 24 * 60 + 1)

    def test_widen_is_clamped_to_the_day(self):
        assert TimeInterval(10, 20).widen(before=30, after=5) == TimeInterval(0, 25)
        assert TimeInterval(1400, 1430).widen(after=30) == TimeInterval(1400, 1440)

    def test_merge_joins_overlapping_and_touching(self):
        merged = merge_intervals([
            TimeInterval(600, 660),
            TimeInterval(540, 600),
            TimeInterval(700, 720),
            TimeInterval(650, 690),
            TimeInterval(800, 800),
        ])
        assert merged == [TimeInterval(540, 690), TimeInterval(700, 720)]

    def test_subtract_splits_around_block(self):
        day = [TimeInterval.from_times("09:00", "17:00")]
        lunch = [TimeInterval.from_times("12:00", "13:00")]
        assert subtract_intervals(day, lunch) == [
            TimeInterval.from_times("09:00", "12:00"),
            TimeInterval.from_times("13:00", "17:00"),
        ]

    def test_subtract_everything(self):
        assert subtract_intervals([TimeInterval(540, 600)], [TimeInterval.whole_day()]) == []

    def test_intersect(self):
        a = [TimeInterval(540, 720), TimeInterval(780, 1020)]
        b = [TimeInterval(600, 840)]
        assert intersect_intervals(a, b) == [TimeInterval(600, 720), TimeInterval(780, 840)]
