# app/utils/activity.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from app.exceptions import MalformedWindowError
from app.utils.interval import WeeklyWindow, conflicts

logger = logging.getLogger("app.activity")


class ActivityCategory(str, Enum):
    TEACHING = "teaching"
    ENROLLED = "enrolled"


@dataclass(frozen=True)
class Activity:
    """A labelled weekly window: one course as taught or as enrolled."""
    id: str
    code: str
    name: str
    window: WeeklyWindow
    category: ActivityCategory
    room_number: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.code} {self.name}".strip()

    def conflicts_with(self, other: "Activity") -> bool:
        if self.id == other.id:
            return False
        return conflicts(self.window, other.window)


@dataclass(frozen=True)
class EnrollmentRef:
    enrollment_id: int
    subject_id: int
    activity: Activity
    status: str = "enrolled"

    @property
    def is_active(self) -> bool:
        return self.status == "enrolled"


@dataclass(frozen=True)
class ConflictReport:
    subject_enrollment: EnrollmentRef
    conflicting_activities: Tuple[Activity, ...]


def course_to_activity(course, category: ActivityCategory) -> Activity:
    """
    ORM Course row -> Activity.
    Raises MalformedWindowError for rows without days or with end <= start.
    """
    window = WeeklyWindow.of(course.days or [], course.start_time, course.end_time)
    return Activity(
        id=str(course.id),
        code=course.code or "",
        name=course.name or "",
        window=window,
        category=ActivityCategory(category),
        room_number=course.room_number,
    )


def courses_to_activities(courses: Iterable, category: ActivityCategory) -> List[Activity]:
    """
    Like course_to_activity for many rows, but a course without a usable
    window is logged and left out instead of failing the whole list.
    """
    out = []
    for c in courses:
        try:
            out.append(course_to_activity(c, category))
        except MalformedWindowError as e:
            logger.warning("Course %s has no usable weekly window: %s", c.id, e.message)
    return out


def enrollment_to_ref(enrollment, course) -> EnrollmentRef:
    return EnrollmentRef(
        enrollment_id=enrollment.id,
        subject_id=enrollment.student_id,
        activity=course_to_activity(course, ActivityCategory.ENROLLED),
        status=enrollment.status,
    )
