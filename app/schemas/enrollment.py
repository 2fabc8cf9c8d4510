from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict

from app.schemas.course import CourseOut
from app.schemas.timetable import ActivityOut


class EnrollIn(BaseModel):
    course_id: int


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    course_id: int
    status: str
    enrolled_at: datetime
    course: CourseOut


class EnrollResultOut(BaseModel):
    enrollment: EnrollmentOut
    # overlaps with the student's other enrolled courses; enrolling is not blocked
    conflicts: List[ActivityOut] = []
