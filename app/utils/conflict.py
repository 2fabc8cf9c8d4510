# app/utils/conflict.py
from collections import OrderedDict
from typing import Dict, Iterable, List, Sequence

from app.utils.activity import Activity, ConflictReport, EnrollmentRef
from app.utils.interval import conflicts


def group_by_subject(enrollments: Iterable[EnrollmentRef]) -> Dict[int, List[EnrollmentRef]]:
    """
    Active enrollments grouped by student, each group kept in input order.
    Dropped rows are ignored.
    """
    groups: Dict[int, List[EnrollmentRef]] = OrderedDict()
    for e in enrollments:
        if not e.is_active:
            continue
        groups.setdefault(e.subject_id, []).append(e)
    return groups


def enumerate_conflicts(
    targets: Sequence[EnrollmentRef],
    active_enrollments: Iterable[EnrollmentRef],
) -> List[ConflictReport]:
    """
    targets: enrollments of interest (e.g. one instructor's roster)
    active_enrollments: every enrolled-status enrollment of the targets'
        students, in natural enrollment order

    One report per target enrollment that overlaps at least one other active
    enrollment of the same student. Conflicting activities follow the peers'
    order. The same pair shows up once from each side when both sides are
    targets.
    """
    peers_by_subject = group_by_subject(active_enrollments)

    reports: List[ConflictReport] = []
    for e in targets:
        if not e.is_active:
            continue
        peers = peers_by_subject.get(e.subject_id, [])
        conflicting = tuple(
            p.activity
            for p in peers
            if p.enrollment_id != e.enrollment_id
            and conflicts(e.activity.window, p.activity.window)
        )
        if conflicting:
            reports.append(ConflictReport(subject_enrollment=e, conflicting_activities=conflicting))
    return reports


def group_reports_by_subject(reports: Iterable[ConflictReport]) -> Dict[int, List[ConflictReport]]:
    """Reports per student, students in first-seen order."""
    grouped: Dict[int, List[ConflictReport]] = OrderedDict()
    for r in reports:
        grouped.setdefault(r.subject_enrollment.subject_id, []).append(r)
    return grouped


def find_conflicting(candidate: Activity, existing: Iterable[Activity]) -> List[Activity]:
    """
    Activities in `existing` that overlap `candidate`, skipping the candidate
    itself by id.
    """
    return [a for a in existing if candidate.conflicts_with(a)]
