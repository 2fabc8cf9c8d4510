from typing import List, Optional
from pydantic import BaseModel

from app.utils.activity import Activity
from app.utils.interval import ordered_days
from app.utils.timetable_grid import TimetableGrid


class ActivityOut(BaseModel):
    id: str
    code: str
    name: str
    category: str            # teaching / enrolled
    days: List[str]
    start_time: str          # "HH:MM"
    end_time: str
    room_number: Optional[str] = None

    @classmethod
    def from_activity(cls, a: Activity) -> "ActivityOut":
        return cls(
            id=a.id,
            code=a.code,
            name=a.name,
            category=a.category.value,
            days=[d.value for d in ordered_days(a.window.days)],
            start_time=str(a.window.start),
            end_time=str(a.window.end),
            room_number=a.room_number,
        )


class TimetableRowOut(BaseModel):
    slot: str                               # "08:00"
    cells: List[Optional[ActivityOut]]      # one per day, same order as TimetableOut.days


class TimetableOut(BaseModel):
    days: List[str]
    slots: List[str]
    rows: List[TimetableRowOut]
    activities: List[ActivityOut] = []

    @classmethod
    def from_grid(cls, grid: TimetableGrid, activities: List[Activity]) -> "TimetableOut":
        return cls(
            days=[d.value for d in grid.days],
            slots=[str(s) for s in grid.slots],
            rows=[
                TimetableRowOut(
                    slot=str(slot),
                    cells=[ActivityOut.from_activity(a) if a else None for a in cells],
                )
                for slot, cells in grid.rows()
            ],
            activities=[ActivityOut.from_activity(a) for a in activities],
        )
