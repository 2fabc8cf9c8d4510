from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.database import get_db
from app.utils.auth import get_current_user, require_roles
from app.utils.interval import WeeklyWindow, ordered_days

from app.models.course import Course
from app.models.course_log import CourseLog
from app.models.enrollment import Enrollment
from app.models.user import User

from app.schemas.course import (
    CourseCreate, CourseUpdate, CourseOut,
    CourseRegistrationsOut, RegistrationOut, CourseLogOut,
)
from app.services.audit import log_course_action

import logging
logger = logging.getLogger("app.courses")


router = APIRouter(prefix="/courses", tags=["Courses"])


def _course_out(course: Course, instructor_name: Optional[str] = None) -> CourseOut:
    base = CourseOut.model_validate(course, from_attributes=True)
    return base.model_copy(update={"instructor_name": instructor_name})


def _get_owned_course(db: Session, course_id: int, user) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if user.role != "admin" and course.instructor_id != user.id:
        raise HTTPException(status_code=403, detail="Not the instructor of this course")
    return course


@router.get("", response_model=list[CourseOut])
def list_courses(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    keyword: Optional[str] = Query(None, description="code / name / instructor keyword"),
    semester: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
):
    q = (
        db.query(Course, User.full_name.label("instructor_name"))
        .outerjoin(User, User.id == Course.instructor_id)
    )
    if not include_inactive:
        q = q.filter(Course.status == "active")
    if semester:
        q = q.filter(Course.semester == semester)
    if keyword:
        k = f"%{keyword.strip()}%"
        q = q.filter(or_(Course.code.ilike(k), Course.name.ilike(k), User.full_name.ilike(k)))

    rows = q.order_by(Course.code.asc()).all()
    return [_course_out(c, name) for c, name in rows]


@router.post("", response_model=CourseOut, status_code=201)
def create_course(
    body: CourseCreate,
    db: Session = Depends(get_db),
    user=Depends(require_roles("faculty", "admin")),
):
    if db.query(Course).filter(Course.code == body.code).first():
        raise HTTPException(status_code=400, detail="Course code already exists")

    course = Course(**body.model_dump(), instructor_id=user.id, status="active")
    db.add(course)
    db.flush()

    log_course_action(
        db,
        course_id=course.id,
        action_type="course_created",
        description=f"Course {course.code} created by {user.full_name or user.username}",
        created_by=user.id,
        details={"code": course.code, "days": course.days},
    )
    db.commit()
    db.refresh(course)
    logger.info("Course %s created by user %s", course.code, user.id)
    return _course_out(course, user.full_name)


@router.get("/mine/registrations", response_model=list[CourseRegistrationsOut])
def my_course_registrations(
    db: Session = Depends(get_db),
    user=Depends(require_roles("faculty", "admin")),
):
    courses = (
        db.query(Course)
        .filter(Course.instructor_id == user.id)
        .order_by(Course.code.asc())
        .all()
    )
    if not courses:
        return []

    rows = (
        db.query(Enrollment, User)
        .join(User, User.id == Enrollment.student_id)
        .filter(Enrollment.course_id.in_([c.id for c in courses]))
        .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
        .all()
    )
    by_course = {}
    for e, student in rows:
        by_course.setdefault(e.course_id, []).append(
            RegistrationOut(
                enrollment_id=e.id,
                student_id=student.id,
                full_name=student.full_name,
                email=student.email,
                status=e.status,
                enrolled_at=e.enrolled_at,
            )
        )

    out = []
    for c in courses:
        regs = by_course.get(c.id, [])
        out.append(CourseRegistrationsOut(
            id=c.id,
            code=c.code,
            name=c.name,
            max_students=c.max_students,
            enrolled_count=sum(1 for r in regs if r.status == "enrolled"),
            enrollments=regs,
        ))
    return out


@router.get("/logs", response_model=list[CourseLogOut])
def list_course_logs(
    db: Session = Depends(get_db),
    user=Depends(require_roles("faculty", "admin")),
    course_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
):
    q = db.query(CourseLog, Course).join(Course, Course.id == CourseLog.course_id)
    if user.role != "admin":
        q = q.filter(Course.instructor_id == user.id)
    if course_id is not None:
        q = q.filter(CourseLog.course_id == course_id)

    rows = q.order_by(CourseLog.created_at.desc(), CourseLog.id.desc()).limit(limit).all()
    return [
        CourseLogOut(
            id=log.id,
            course_id=log.course_id,
            course_code=course.code,
            course_name=course.name,
            action_type=log.action_type,
            description=log.description,
            created_by=log.created_by,
            metadata=log.details or {},
            created_at=log.created_at,
        )
        for log, course in rows
    ]


@router.get("/{course_id}", response_model=CourseOut)
def get_course(course_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    row = (
        db.query(Course, User.full_name)
        .outerjoin(User, User.id == Course.instructor_id)
        .filter(Course.id == course_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Course not found")
    return _course_out(row[0], row[1])


@router.put("/{course_id}", response_model=CourseOut)
def update_course(
    course_id: int,
    body: CourseUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_roles("faculty", "admin")),
):
    course = _get_owned_course(db, course_id, user)

    # explicit nulls are ignored
    data = body.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise HTTPException(status_code=400, detail="Nothing to update")

    # the merged window must still be well-formed
    window = WeeklyWindow.of(
        data.get("days", course.days),
        data.get("start_time", course.start_time),
        data.get("end_time", course.end_time),
    )
    if "days" in data:
        data["days"] = [d.value for d in ordered_days(window.days)]

    for k, v in data.items():
        setattr(course, k, v)

    log_course_action(
        db,
        course_id=course.id,
        action_type="course_update",
        description=f"Course {course.code} updated: {', '.join(sorted(data))}",
        created_by=user.id,
        details={"fields": sorted(data)},
    )
    db.commit()
    db.refresh(course)
    return _course_out(course, course.instructor.full_name if course.instructor else None)
