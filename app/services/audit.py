from __future__ import annotations

from sqlalchemy.orm import Session

from app.models.course_log import CourseLog

ACTION_TYPES = ("enrollment", "drop", "course_created", "course_update", "conflict_resolution")


def log_course_action(
    db: Session,
    *,
    course_id: int,
    action_type: str,
    description: str,
    created_by: int | None = None,
    details: dict | None = None,
) -> CourseLog:
    """
    Stage a course log row in the caller's transaction. Nothing is committed
    here; the row becomes visible together with the change it describes.
    """
    if action_type not in ACTION_TYPES:
        raise ValueError(f"Unknown course log action: {action_type}")
    record = CourseLog(
        course_id=course_id,
        action_type=action_type,
        description=description,
        created_by=created_by,
        details=details or {},
    )
    db.add(record)
    db.flush()
    return record
