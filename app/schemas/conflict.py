from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.schemas.timetable import ActivityOut
from app.schemas.user import StudentOut


class ConflictReportOut(BaseModel):
    enrollment_id: int
    course: ActivityOut
    conflicting_courses: List[ActivityOut]


class StudentConflictsOut(BaseModel):
    student: StudentOut
    conflicts: List[ConflictReportOut]


class ConflictListOut(BaseModel):
    total: int                      # number of reports, not students
    students: List[StudentConflictsOut]


class ResolveIn(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ResolveOut(BaseModel):
    enrollment_id: int
    course_id: int
    student_id: int
    status: str
    log_id: int
    description: str
    resolved_at: datetime
