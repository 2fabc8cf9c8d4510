from datetime import datetime, time
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.utils.interval import WeeklyWindow, ordered_days


class CourseBase(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    credits: int = Field(3, ge=0)
    lecture_hours: int = Field(3, ge=0)
    tutorial_hours: int = Field(0, ge=0)
    practical_hours: int = Field(0, ge=0)
    self_study_hours: int = Field(3, ge=0)
    max_students: int = Field(30, ge=1)
    days: List[str]
    start_time: time
    end_time: time
    semester: Optional[str] = None
    room_number: Optional[str] = None


class CourseCreate(CourseBase):

    @model_validator(mode="after")
    def _validate_window(self):
        # raises MalformedWindowError (a ValueError) -> 422
        window = WeeklyWindow.of(self.days, self.start_time, self.end_time)
        self.days = [d.value for d in ordered_days(window.days)]
        return self


class CourseUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0)
    lecture_hours: Optional[int] = Field(None, ge=0)
    tutorial_hours: Optional[int] = Field(None, ge=0)
    practical_hours: Optional[int] = Field(None, ge=0)
    self_study_hours: Optional[int] = Field(None, ge=0)
    max_students: Optional[int] = Field(None, ge=1)
    days: Optional[List[str]] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    semester: Optional[str] = None
    room_number: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(active|inactive)$")


class CourseOut(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    instructor_id: Optional[int] = None
    instructor_name: Optional[str] = None


class RegistrationOut(BaseModel):
    enrollment_id: int
    student_id: int
    full_name: str
    email: Optional[str] = None
    status: str
    enrolled_at: datetime


class CourseRegistrationsOut(BaseModel):
    id: int
    code: str
    name: str
    max_students: int
    enrolled_count: int
    enrollments: List[RegistrationOut] = []


class CourseLogOut(BaseModel):
    id: int
    course_id: int
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    action_type: str
    description: str
    created_by: Optional[int] = None
    metadata: dict = {}
    created_at: datetime

