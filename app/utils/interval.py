# app/utils/interval.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Iterable, Union

from app.exceptions import MalformedWindowError


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def parse(cls, value: Union[str, "Weekday"]) -> "Weekday":
        """
        "Monday" / "monday" / "Mon" -> Weekday.MONDAY
        """
        if isinstance(value, Weekday):
            return value
        key = (value or "").strip().lower()
        for day in cls:
            if key in (day.value.lower(), day.value[:3].lower()):
                return day
        raise MalformedWindowError(f"Unknown weekday: {value!r}")


FIVE_DAY_WEEK = (
    Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY,
)
SEVEN_DAY_WEEK = tuple(Weekday)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """Wall-clock time as minutes since midnight. No date, no timezone."""
    minutes: int

    def __post_init__(self):
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise MalformedWindowError(f"Time of day out of range: {self.minutes} minutes")

    @classmethod
    def parse(cls, value: Union[str, time, "TimeOfDay"]) -> "TimeOfDay":
        """
        "09:30" / "09:30:00" / time(9, 30) -> TimeOfDay(570)
        """
        if isinstance(value, TimeOfDay):
            return value
        if isinstance(value, time):
            return cls(value.hour * 60 + value.minute)

        parts = (value or "").strip().split(":")
        if len(parts) not in (2, 3):
            raise MalformedWindowError(f"Invalid time of day: {value!r}")
        try:
            hour, minute = int(parts[0]), int(parts[1])
            second = int(parts[2]) if len(parts) == 3 else 0
        except ValueError:
            raise MalformedWindowError(f"Invalid time of day: {value!r}")
        if not (0 <= hour < 24 and 0 <= minute < 60 and 0 <= second < 60):
            raise MalformedWindowError(f"Invalid time of day: {value!r}")
        return cls(hour * 60 + minute)

    def to_time(self) -> time:
        return time(self.minutes // 60, self.minutes % 60)

    def __str__(self) -> str:
        return f"{self.minutes // 60:02d}:{self.minutes % 60:02d}"


@dataclass(frozen=True)
class WeeklyWindow:
    days: frozenset
    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        if not self.days:
            raise MalformedWindowError("A weekly window needs at least one day")
        if self.start >= self.end:
            raise MalformedWindowError(
                f"Window must end after it starts ({self.start} - {self.end})",
                details={"start": str(self.start), "end": str(self.end)},
            )

    @classmethod
    def of(cls, days: Iterable, start, end) -> "WeeklyWindow":
        return cls(
            days=frozenset(Weekday.parse(d) for d in days),
            start=TimeOfDay.parse(start),
            end=TimeOfDay.parse(end),
        )

    def covers(self, day: Weekday, at: TimeOfDay) -> bool:
        """True if `at` on `day` falls inside [start, end)."""
        return day in self.days and self.start <= at < self.end


def days_intersect(a: Iterable, b: Iterable) -> bool:
    return not frozenset(a).isdisjoint(b)


def times_overlap(a: WeeklyWindow, b: WeeklyWindow) -> bool:
    # half-open: back-to-back windows do not overlap
    return a.start < b.end and b.start < a.end


def conflicts(a: WeeklyWindow, b: WeeklyWindow) -> bool:
    """
    Shared weekday and overlapping [start, end).
    Callers exclude self-comparison by activity id, not by value.
    """
    return days_intersect(a.days, b.days) and times_overlap(a, b)


def ordered_days(days: Iterable) -> list:
    """Weekdays in calendar order (Monday first)."""
    return sorted((Weekday.parse(d) for d in set(days)), key=SEVEN_DAY_WEEK.index)
