import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import FetchError, ResolveError
from app.models.course_log import CourseLog
from app.models.enrollment import Enrollment
from app.services import conflict_resolution


@pytest.fixture
def roster(make_user, make_course, enroll):
    prof = make_user("prof", role="faculty", full_name="Prof Ada")
    other_prof = make_user("other", role="faculty")
    alice = make_user("alice", full_name="Alice Chen")
    bob = make_user("bob", full_name="Bob Diaz")

    mine = make_course("CS101", ["Monday", "Wednesday"], "09:00", "10:30", instructor=prof)
    clash = make_course("MA201", ["Wednesday", "Friday"], "10:00", "11:00", instructor=other_prof)
    later = make_course("PH110", ["Monday"], "10:30", "12:00", instructor=other_prof)

    e_alice_mine = enroll(alice, mine)
    e_alice_clash = enroll(alice, clash)
    e_bob_mine = enroll(bob, mine)
    e_bob_later = enroll(bob, later)   # back to back with CS101, no conflict
    return {
        "prof": prof, "other_prof": other_prof, "alice": alice, "bob": bob,
        "mine": mine, "clash": clash, "later": later,
        "e_alice_mine": e_alice_mine, "e_alice_clash": e_alice_clash,
        "e_bob_mine": e_bob_mine, "e_bob_later": e_bob_later,
    }


def test_load_conflicts_for_instructor_roster(db, roster):
    reports = conflict_resolution.load_conflicts(db, roster["prof"].id)

    assert len(reports) == 1
    report = reports[0]
    assert report.subject_enrollment.enrollment_id == roster["e_alice_mine"].id
    assert report.subject_enrollment.subject_id == roster["alice"].id
    assert [a.code for a in report.conflicting_activities] == ["MA201"]


def test_load_conflicts_from_other_instructor_side(db, roster):
    reports = conflict_resolution.load_conflicts(db, roster["other_prof"].id)
    assert [r.subject_enrollment.enrollment_id for r in reports] == [roster["e_alice_clash"].id]
    assert [a.code for a in reports[0].conflicting_activities] == ["CS101"]


def test_load_conflicts_empty_roster(db, make_user):
    prof = make_user("lonely", role="faculty")
    assert conflict_resolution.load_conflicts(db, prof.id) == []


def test_resolve_drops_and_writes_one_log(db, roster):
    result = conflict_resolution.resolve(
        db, roster["e_alice_clash"].id, operator=roster["other_prof"], reason="student request",
    )

    assert result.enrollment.status == "dropped"
    logs = db.query(CourseLog).filter(CourseLog.action_type == "conflict_resolution").all()
    assert len(logs) == 1
    log = logs[0]
    assert log.course_id == roster["clash"].id
    assert log.created_by == roster["other_prof"].id
    assert log.description == (
        "Schedule conflict resolved: Alice Chen was dropped from MA201 (student request)"
    )
    assert log.details["enrollment_id"] == roster["e_alice_clash"].id


def test_after_resolve_no_report_on_either_side(db, roster):
    conflict_resolution.resolve(db, roster["e_alice_clash"].id, operator=roster["other_prof"])

    assert conflict_resolution.load_conflicts(db, roster["prof"].id) == []
    assert conflict_resolution.load_conflicts(db, roster["other_prof"].id) == []


def test_second_resolve_fails_without_second_log(db, roster):
    eid = roster["e_alice_mine"].id
    conflict_resolution.resolve(db, eid, operator=roster["prof"])

    with pytest.raises(ResolveError) as exc:
        conflict_resolution.resolve(db, eid, operator=roster["prof"])
    assert exc.value.status_code == 409
    assert db.query(CourseLog).count() == 1


def test_resolve_unknown_enrollment(db, roster):
    with pytest.raises(ResolveError):
        conflict_resolution.resolve(db, 9999, operator=roster["prof"])
    assert db.query(CourseLog).count() == 0


def test_resolve_store_failure_leaves_no_partial_state(db, roster, monkeypatch):
    eid = roster["e_alice_mine"].id

    def boom(*args, **kwargs):
        raise OperationalError("INSERT INTO course_logs", {}, Exception("disk I/O error"))

    monkeypatch.setattr(conflict_resolution, "log_course_action", boom)

    with pytest.raises(ResolveError):
        conflict_resolution.resolve(db, eid, operator=roster["prof"])

    db.expire_all()
    assert db.query(Enrollment).filter(Enrollment.id == eid).one().status == "enrolled"
    assert db.query(CourseLog).count() == 0


def test_fetch_failure_aborts_enumeration(db, roster, monkeypatch):
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "query", broken_query)
    with pytest.raises(FetchError) as exc:
        conflict_resolution.load_conflicts(db, roster["prof"].id)
    assert exc.value.status_code == 503


def test_describe_resolution_without_reason():
    assert conflict_resolution.describe_resolution("Bob", "CS101", "  ") == (
        "Schedule conflict resolved: Bob was dropped from CS101"
    )


def test_resolve_loses_race_after_initial_read(db, session_factory, roster, monkeypatch):
    eid = roster["e_alice_mine"].id
    original = conflict_resolution.describe_resolution

    def dropped_elsewhere(*args, **kwargs):
        other = session_factory()
        try:
            other.query(Enrollment).filter(Enrollment.id == eid).update({Enrollment.status: "dropped"})
            other.commit()
        finally:
            other.close()
        return original(*args, **kwargs)

    monkeypatch.setattr(conflict_resolution, "describe_resolution", dropped_elsewhere)

    with pytest.raises(ResolveError) as exc:
        conflict_resolution.resolve(db, eid, operator=roster["prof"])
    assert exc.value.status_code == 409

    db.expire_all()
    assert db.query(CourseLog).count() == 0
    assert db.query(Enrollment).filter(Enrollment.id == eid).one().status == "dropped"


def test_resolve_lookup_failure_is_a_resolve_error(db, roster, monkeypatch):
    eid = roster["e_alice_mine"].id

    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "query", broken_query)
    with pytest.raises(ResolveError) as exc:
        conflict_resolution.resolve(db, eid, operator=roster["prof"])
    assert exc.value.status_code == 409
