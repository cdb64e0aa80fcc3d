# studio_scheduler/utils/time_utils.py
"""
Clock-time and duration helpers.

All values are studio-local wall-clock times on a single day. Intervals are
half-open [start, end) and expressed in minutes since midnight.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, List, Union

from studio_scheduler.core.exceptions import InvalidRangeError, ValidationError

MINUTES_PER_DAY = 24 * 60

TimeLike = Union[str, time]


def parse_time(value: TimeLike) -> time:
    """Accepts "HH:MM", "HH:MM:SS" or a time object"""
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        for fmt in ("%H:%M", "%H:%M:%S"):
            try:
                return datetime.strptime(value.strip(), fmt).time()
            except ValueError:
                continue
    raise ValidationError(f"Time must be in HH:MM format, got {value!r}")


def format_minutes(minutes: int) -> str:
    # 1440 renders as "24:00" for interval ends
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time(value: TimeLike) -> str:
    """Render as HH:MM"""
    return parse_time(value).strftime("%H:%M")


def to_minutes(value: TimeLike) -> int:
    t = parse_time(value)
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise InvalidRangeError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def add_minutes(value: TimeLike, minutes: int) -> time:
    """
    Shift a clock time by a number of minutes.

    Services never cross midnight, so a result at or past 24:00 (or before
    00:00) raises InvalidRangeError instead of wrapping.
    """
    total = to_minutes(value) + minutes
    if total < 0 or total >= MINUTES_PER_DAY:
        raise InvalidRangeError(
            f"{format_time(value)} + {minutes} minutes crosses midnight",
            {"start_time": format_time(value), "minutes": minutes},
        )
    return from_minutes(total)


def duration_minutes(start: TimeLike, end: TimeLike) -> int:
    delta = to_minutes(end) - to_minutes(start)
    if delta <= 0:
        raise InvalidRangeError(
            f"End time {format_time(end)} must be after start time {format_time(start)}",
            {"start_time": format_time(start), "end_time": format_time(end)},
        )
    return delta


def day_of_week(value: date) -> int:
    """0=Sunday .. 6=Saturday"""
    return (value.weekday() + 1) % 7


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Each date in the inclusive range"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def align_up(minutes: int, step: int) -> int:
    """Round up to the next multiple of step"""
    return -(-minutes // step) * step


@dataclass(frozen=True, order=True)
class TimeInterval:
    """Half-open [start, end) in minutes since midnight"""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end > MINUTES_PER_DAY or self.end < self.start:
            raise InvalidRangeError(f"Invalid interval [{self.start}, {self.end})")

    @classmethod
    def from_times(cls, start: TimeLike, end: TimeLike) -> "TimeInterval":
        duration_minutes(start, end)
        return cls(to_minutes(start), to_minutes(end))

    @classmethod
    def whole_day(cls) -> "TimeInterval":
        return cls(0, MINUTES_PER_DAY)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def widen(self, before: int = 0, after: int = 0) -> "TimeInterval":
        """Grow on both sides, clamped to the day"""
        return TimeInterval(max(0, self.start - before), min(MINUTES_PER_DAY, self.end + after))

    def to_dict(self):
        return {"start": format_minutes(self.start), "end": format_minutes(self.end)}


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    return a.overlaps(b)


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Sort and merge overlapping or touching intervals; empty ones are dropped"""
    merged: List[TimeInterval] = []
    for interval in sorted(i for i in intervals if not i.is_empty):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeInterval(last.start, max(last.end, interval.end))
        else:
            merged.append(interval)
    return merged


def subtract_intervals(
        base: Iterable[TimeInterval],
        removals: Iterable[TimeInterval]
) -> List[TimeInterval]:
    """Remove every removal interval from the base set"""
    result = merge_intervals(base)
    for removal in merge_intervals(removals):
        remaining = []
        for interval in result:
            if not interval.overlaps(removal):
                remaining.append(interval)
                continue
            if interval.start < removal.start:
                remaining.append(TimeInterval(interval.start, removal.start))
            if removal.end < interval.end:
                remaining.append(TimeInterval(removal.end, interval.end))
        result = remaining
    return result


def intersect_intervals(
        a: Iterable[TimeInterval],
        b: Iterable[TimeInterval]
) -> List[TimeInterval]:
    result = []
    b_merged = merge_intervals(b)
    for left in merge_intervals(a):
        for right in b_merged:
            start, end = max(left.start, right.start), min(left.end, right.end)
            if start < end:
                result.append(TimeInterval(start, end))
    return merge_intervals(result)
