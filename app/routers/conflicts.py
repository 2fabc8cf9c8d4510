from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.utils.auth import require_roles

from app.models.enrollment import Enrollment
from app.models.course import Course

from app.schemas.conflict import (
    ConflictListOut, ConflictReportOut, ResolveIn, ResolveOut, StudentConflictsOut,
)
from app.schemas.timetable import ActivityOut
from app.schemas.user import StudentOut
from app.services import conflict_resolution
from app.utils.conflict import group_reports_by_subject

import logging
logger = logging.getLogger("app.conflicts")

router = APIRouter(tags=["Conflicts"])


@router.get("/faculty/me/conflicts", response_model=ConflictListOut)
def list_my_conflicts(
    db: Session = Depends(get_db),
    user=Depends(require_roles("faculty", "admin")),
):
    reports = conflict_resolution.load_conflicts(db, user.id)
    grouped = group_reports_by_subject(reports)
    students = conflict_resolution.load_students(db, grouped.keys())

    out = []
    for student_id, student_reports in grouped.items():
        s = students.get(student_id)
        out.append(StudentConflictsOut(
            student=StudentOut(
                id=student_id,
                full_name=s.full_name if s else "",
                email=s.email if s else None,
            ),
            conflicts=[
                ConflictReportOut(
                    enrollment_id=r.subject_enrollment.enrollment_id,
                    course=ActivityOut.from_activity(r.subject_enrollment.activity),
                    conflicting_courses=[ActivityOut.from_activity(a) for a in r.conflicting_activities],
                )
                for r in student_reports
            ],
        ))
    return ConflictListOut(total=len(reports), students=out)


@router.post("/faculty/conflicts/{enrollment_id}/resolve", response_model=ResolveOut)
def resolve_conflict(
    enrollment_id: int,
    body: Optional[ResolveIn] = None,
    db: Session = Depends(get_db),
    user=Depends(require_roles("faculty", "admin")),
):
    row = (
        db.query(Enrollment, Course)
        .join(Course, Course.id == Enrollment.course_id)
        .filter(Enrollment.id == enrollment_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    if user.role != "admin" and row[1].instructor_id != user.id:
        raise HTTPException(status_code=403, detail="Only the course instructor can drop this enrollment")

    reason = body.reason if body else None
    result = conflict_resolution.resolve(db, enrollment_id, operator=user, reason=reason)
    return ResolveOut(
        enrollment_id=result.enrollment.id,
        course_id=result.enrollment.course_id,
        student_id=result.enrollment.student_id,
        status=result.enrollment.status,
        log_id=result.log.id,
        description=result.log.description,
        resolved_at=result.resolved_at,
    )
