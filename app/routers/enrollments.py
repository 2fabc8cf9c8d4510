from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.utils.auth import get_current_user

from app.models.course import Course
from app.models.enrollment import Enrollment

from app.schemas.course import CourseOut
from app.schemas.enrollment import EnrollIn, EnrollmentOut, EnrollResultOut
from app.schemas.timetable import ActivityOut
from app.services.audit import log_course_action
from app.utils.activity import ActivityCategory, course_to_activity, courses_to_activities
from app.utils.conflict import find_conflicting

import logging
logger = logging.getLogger("app.enrollments")


router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


def _enrollment_out(e: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        id=e.id,
        student_id=e.student_id,
        course_id=e.course_id,
        status=e.status,
        enrolled_at=e.enrolled_at,
        course=CourseOut.model_validate(e.course, from_attributes=True),
    )


@router.get("/me", response_model=list[EnrollmentOut])
def my_enrollments(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    status: str = Query("enrolled", pattern="^(enrolled|dropped)$"),
):
    rows = (
        db.query(Enrollment)
        .filter(Enrollment.student_id == user.id, Enrollment.status == status)
        .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
        .all()
    )
    return [_enrollment_out(e) for e in rows]


@router.post("", response_model=EnrollResultOut, status_code=201)
def enroll(body: EnrollIn, db: Session = Depends(get_db), user=Depends(get_current_user)):
    # 1) course exists and is open
    course = db.query(Course).filter(Course.id == body.course_id).first()
    if not course or course.status != "active":
        raise HTTPException(status_code=404, detail="Course not found")
    if course.instructor_id == user.id:
        raise HTTPException(status_code=400, detail="Cannot enroll in a course you teach")

    # 2) duplicates; a dropped row is re-activated
    row = (
        db.query(Enrollment)
        .filter(Enrollment.student_id == user.id, Enrollment.course_id == course.id)
        .first()
    )
    if row and row.status == "enrolled":
        raise HTTPException(status_code=400, detail="Already enrolled")

    # 3) capacity
    taken = (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course.id, Enrollment.status == "enrolled")
        .count()
    )
    if taken >= course.max_students:
        raise HTTPException(status_code=400, detail="Course is full")

    # 4) overlaps are reported, not blocked
    others = (
        db.query(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .filter(Enrollment.student_id == user.id, Enrollment.status == "enrolled")
        .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
        .all()
    )
    candidate = course_to_activity(course, ActivityCategory.ENROLLED)
    clashes = find_conflicting(candidate, courses_to_activities(others, ActivityCategory.ENROLLED))

    # 5) write
    if row:
        row.status = "enrolled"
        row.enrolled_at = datetime.utcnow()
    else:
        row = Enrollment(student_id=user.id, course_id=course.id, status="enrolled")
        db.add(row)
    db.flush()

    log_course_action(
        db,
        course_id=course.id,
        action_type="enrollment",
        description=f"{user.full_name or user.username} enrolled in {course.code}",
        created_by=user.id,
        details={"enrollment_id": row.id, "conflicts": [a.code for a in clashes]},
    )
    db.commit()
    db.refresh(row)

    if clashes:
        logger.info("User %s enrolled in %s with %d overlap(s)", user.id, course.code, len(clashes))
    return EnrollResultOut(
        enrollment=_enrollment_out(row),
        conflicts=[ActivityOut.from_activity(a) for a in clashes],
    )


@router.delete("/{enrollment_id}", response_model=EnrollmentOut)
def drop_enrollment(enrollment_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    row = (
        db.query(Enrollment)
        .filter(Enrollment.id == enrollment_id, Enrollment.student_id == user.id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    if row.status != "enrolled":
        raise HTTPException(status_code=400, detail="Enrollment already dropped")

    row.status = "dropped"
    log_course_action(
        db,
        course_id=row.course_id,
        action_type="drop",
        description=f"{user.full_name or user.username} dropped {row.course.code}",
        created_by=user.id,
        details={"enrollment_id": row.id},
    )
    db.commit()
    db.refresh(row)
    return _enrollment_out(row)
