# app/utils/timetable_grid.py
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.utils.activity import Activity
from app.utils.interval import FIVE_DAY_WEEK, TimeOfDay, Weekday

Cell = Tuple[Weekday, int]


def hourly_slots(first: str = "08:00", last: str = "18:00", step_minutes: int = 60) -> Tuple[TimeOfDay, ...]:
    """
    ("08:00", "10:00", 60) -> (08:00, 09:00, 10:00)
    Both ends inclusive.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")
    start = TimeOfDay.parse(first).minutes
    stop = TimeOfDay.parse(last).minutes
    return tuple(TimeOfDay(m) for m in range(start, stop + 1, step_minutes))


class TimetableGrid:
    """
    Read-only Day x Slot lookup. A cell holds at most one Activity.
    """

    __slots__ = ("_days", "_slots", "_cells")

    def __init__(self, days: Sequence[Weekday], slots: Sequence[TimeOfDay], cells: Dict[Cell, Activity]):
        self._days = tuple(days)
        self._slots = tuple(slots)
        self._cells = MappingProxyType(dict(cells))

    @property
    def days(self) -> Tuple[Weekday, ...]:
        return self._days

    @property
    def slots(self) -> Tuple[TimeOfDay, ...]:
        return self._slots

    @property
    def cells(self):
        return self._cells

    def get(self, day: Weekday, slot_index: int) -> Optional[Activity]:
        return self._cells.get((day, slot_index))

    def rows(self) -> List[Tuple[TimeOfDay, List[Optional[Activity]]]]:
        """One row per slot anchor, one column per day (the way it is drawn)."""
        return [
            (slot, [self._cells.get((day, idx)) for day in self._days])
            for idx, slot in enumerate(self._slots)
        ]

    def __eq__(self, other):
        if not isinstance(other, TimetableGrid):
            return NotImplemented
        return (
            self._days == other._days
            and self._slots == other._slots
            and dict(self._cells) == dict(other._cells)
        )

    def __repr__(self):
        return f"TimetableGrid(days={len(self._days)}, slots={len(self._slots)}, filled={len(self._cells)})"


def build_timetable_grid(
    activities: Iterable[Activity],
    slots: Sequence[TimeOfDay],
    days: Sequence[Weekday] = FIVE_DAY_WEEK,
) -> TimetableGrid:
    """
    Place activities on the Day x Slot grid.

    A cell (day, slot) takes the first activity, in input order, whose window
    covers that day and whose [start, end) contains the slot anchor. Later
    activities covering the same cell are not shown; this is a display rule,
    use the conflict enumerator to detect double bookings.

    An activity shorter than the slot spacing that contains no anchor occupies
    no cell.
    """
    days = tuple(Weekday.parse(d) for d in days)
    slots = tuple(TimeOfDay.parse(s) for s in slots)
    if any(a >= b for a, b in zip(slots, slots[1:])):
        raise ValueError("slot anchors must be strictly ascending")

    activities = list(activities)
    cells: Dict[Cell, Activity] = {}
    for day in days:
        for idx, anchor in enumerate(slots):
            for activity in activities:
                if activity.window.covers(day, anchor):
                    cells[(day, idx)] = activity
                    break

    return TimetableGrid(days, slots, cells)
