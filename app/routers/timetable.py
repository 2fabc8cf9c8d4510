from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.exceptions import FetchError
from app.utils.auth import get_current_user, require_roles

from app.models.course import Course
from app.models.enrollment import Enrollment

from app.schemas.timetable import TimetableOut
from app.utils.activity import Activity, ActivityCategory, courses_to_activities
from app.utils.excel_export import make_filename, timetable_to_xlsx_bytes
from app.utils.interval import FIVE_DAY_WEEK, SEVEN_DAY_WEEK
from app.utils.timetable_grid import build_timetable_grid, hourly_slots

import logging
logger = logging.getLogger("app.timetable")

router = APIRouter(tags=["Timetable"])


def _grid_layout():
    slots = hourly_slots(
        settings.TIMETABLE_FIRST_SLOT,
        settings.TIMETABLE_LAST_SLOT,
        settings.TIMETABLE_SLOT_MINUTES,
    )
    days = SEVEN_DAY_WEEK if settings.TIMETABLE_INCLUDE_WEEKEND else FIVE_DAY_WEEK
    return slots, days


def load_user_activities(db: Session, user_id: int, include_teaching: bool = False) -> List[Activity]:
    """
    Teaching courses first (by code), then enrolled courses in enrollment
    order. The grid shows the first match per cell, so teaching wins.
    """
    try:
        teaching = []
        if include_teaching:
            teaching = (
                db.query(Course)
                .filter(Course.instructor_id == user_id, Course.status == "active")
                .order_by(Course.code.asc())
                .all()
            )
        enrolled = (
            db.query(Course)
            .join(Enrollment, Enrollment.course_id == Course.id)
            .filter(Enrollment.student_id == user_id, Enrollment.status == "enrolled")
            .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Timetable fetch failed for user %s", user_id)
        raise FetchError("Could not load timetable", details={"user_id": user_id}) from e

    return (
        courses_to_activities(teaching, ActivityCategory.TEACHING)
        + courses_to_activities(enrolled, ActivityCategory.ENROLLED)
    )


@router.get("/students/me/timetable", response_model=TimetableOut)
def get_my_timetable(db: Session = Depends(get_db), user=Depends(get_current_user)):
    activities = load_user_activities(db, user.id)
    slots, days = _grid_layout()
    grid = build_timetable_grid(activities, slots, days)
    return TimetableOut.from_grid(grid, activities)


@router.get("/students/me/timetable/export")
def export_my_timetable(db: Session = Depends(get_db), user=Depends(get_current_user)):
    activities = load_user_activities(db, user.id, include_teaching=user.role == "faculty")
    slots, days = _grid_layout()
    grid = build_timetable_grid(activities, slots, days)

    xlsx_bytes = timetable_to_xlsx_bytes(grid)
    filename = make_filename("timetable")

    return StreamingResponse(
        iter([xlsx_bytes]),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/faculty/me/timetable", response_model=TimetableOut)
def get_faculty_timetable(
    db: Session = Depends(get_db),
    user=Depends(require_roles("faculty", "admin")),
):
    activities = load_user_activities(db, user.id, include_teaching=True)
    slots, days = _grid_layout()
    grid = build_timetable_grid(activities, slots, days)
    return TimetableOut.from_grid(grid, activities)
