from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import FetchError, MalformedWindowError, ResolveError
from app.models.course import Course
from app.models.course_log import CourseLog
from app.models.enrollment import Enrollment
from app.models.user import User
from app.services.audit import log_course_action
from app.utils.activity import ConflictReport, EnrollmentRef, enrollment_to_ref
from app.utils.conflict import enumerate_conflicts

logger = logging.getLogger("app.conflicts")


@dataclass(frozen=True)
class ResolveResult:
    enrollment: Enrollment
    log: CourseLog
    resolved_at: datetime


def _to_refs(rows: Iterable) -> List[EnrollmentRef]:
    refs = []
    for enrollment, course in rows:
        try:
            refs.append(enrollment_to_ref(enrollment, course))
        except MalformedWindowError as e:
            # stored course without a usable window; it cannot take part in overlap checks
            logger.warning("Skipping enrollment %s (course %s): %s", enrollment.id, course.id, e.message)
    return refs


def load_conflicts(db: Session, instructor_id: int) -> List[ConflictReport]:
    """
    Conflict reports for every enrolled student of the instructor's courses.

    Two queries: the roster, then every active enrollment of the roster's
    students in (enrolled_at, id) order. Any store error aborts the whole
    call with FetchError.
    """
    try:
        roster = (
            db.query(Enrollment, Course)
            .join(Course, Course.id == Enrollment.course_id)
            .filter(
                Course.instructor_id == instructor_id,
                Enrollment.status == "enrolled",
            )
            .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
            .all()
        )
        student_ids = sorted({e.student_id for e, _ in roster})
        if not student_ids:
            return []

        active = (
            db.query(Enrollment, Course)
            .join(Course, Course.id == Enrollment.course_id)
            .filter(
                Enrollment.student_id.in_(student_ids),
                Enrollment.status == "enrolled",
            )
            .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Conflict fetch failed for instructor %s", instructor_id)
        raise FetchError("Could not load enrollments", details={"instructor_id": instructor_id}) from e

    reports = enumerate_conflicts(_to_refs(roster), _to_refs(active))
    logger.info(
        "Instructor %s: %d roster enrollments, %d conflict reports",
        instructor_id, len(roster), len(reports),
    )
    return reports


def load_students(db: Session, student_ids: Iterable[int]) -> Dict[int, User]:
    ids = list(dict.fromkeys(student_ids))
    if not ids:
        return {}
    try:
        rows = db.query(User).filter(User.id.in_(ids)).all()
    except SQLAlchemyError as e:
        logger.exception("Student fetch failed")
        raise FetchError("Could not load students") from e
    return {u.id: u for u in rows}


def describe_resolution(student_name: str, course_code: str, reason: Optional[str] = None) -> str:
    text = f"Schedule conflict resolved: {student_name} was dropped from {course_code}"
    if reason and reason.strip():
        text += f" ({reason.strip()})"
    return text


def resolve(db: Session, enrollment_id: int, operator: User, reason: Optional[str] = None) -> ResolveResult:
    """
    enrolled -> dropped, plus one conflict_resolution course log, in a single
    transaction. The status change is a conditional UPDATE so a second
    concurrent call sees zero rows and fails without logging anything.
    """
    try:
        enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
        if enrollment is None:
            raise ResolveError(enrollment_id, "not found")
        if enrollment.status != "enrolled":
            raise ResolveError(enrollment_id, f"status is {enrollment.status}")

        course = enrollment.course
        student = enrollment.student
        student_name = (student.full_name or student.username) if student else str(enrollment.student_id)
        description = describe_resolution(student_name, course.code, reason)

        updated = (
            db.query(Enrollment)
            .filter(Enrollment.id == enrollment_id, Enrollment.status == "enrolled")
            .update({Enrollment.status: "dropped"}, synchronize_session=False)
        )
        if updated != 1:
            db.rollback()
            raise ResolveError(enrollment_id, "already dropped")

        log = log_course_action(
            db,
            course_id=course.id,
            action_type="conflict_resolution",
            description=description,
            created_by=operator.id,
            details={
                "enrollment_id": enrollment_id,
                "student_id": enrollment.student_id,
                "student_name": student_name,
                "reason": reason,
            },
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Resolve failed for enrollment %s", enrollment_id)
        raise ResolveError(enrollment_id, "the status update was rejected, retry or abort") from e

    db.refresh(enrollment)
    db.refresh(log)
    logger.info("Enrollment %s dropped by user %s: %s", enrollment_id, operator.id, description)
    return ResolveResult(enrollment=enrollment, log=log, resolved_at=datetime.utcnow())
