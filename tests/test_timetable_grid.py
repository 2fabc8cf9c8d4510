import pytest

from app.utils.activity import Activity, ActivityCategory
from app.utils.interval import FIVE_DAY_WEEK, SEVEN_DAY_WEEK, TimeOfDay, Weekday, WeeklyWindow
from app.utils.timetable_grid import TimetableGrid, build_timetable_grid, hourly_slots

SLOTS = hourly_slots("08:00", "18:00")


def act(id, days, start, end, category=ActivityCategory.ENROLLED):
    return Activity(
        id=id,
        code=id.upper(),
        name=f"Course {id}",
        window=WeeklyWindow.of(days, start, end),
        category=category,
    )


def slot_index(hhmm):
    return SLOTS.index(TimeOfDay.parse(hhmm))


def test_hourly_slots_inclusive_range():
    assert [str(s) for s in SLOTS] == [
        "08:00", "09:00", "10:00", "11:00", "12:00", "13:00",
        "14:00", "15:00", "16:00", "17:00", "18:00",
    ]
    assert [str(s) for s in hourly_slots("08:00", "09:00", 30)] == ["08:00", "08:30", "09:00"]


def test_activity_placed_on_each_covered_slot_and_day():
    a = act("a", ["Monday", "Wednesday"], "09:00", "11:00")
    grid = build_timetable_grid([a], SLOTS)

    for day in (Weekday.MONDAY, Weekday.WEDNESDAY):
        assert grid.get(day, slot_index("09:00")) == a
        assert grid.get(day, slot_index("10:00")) == a
        assert grid.get(day, slot_index("11:00")) is None
        assert grid.get(day, slot_index("08:00")) is None
    assert grid.get(Weekday.TUESDAY, slot_index("09:00")) is None
    assert len(grid.cells) == 4


def test_first_match_wins_on_input_order():
    x = act("x", ["Monday"], "09:00", "10:00")
    y = act("y", ["Monday"], "09:00", "10:00")

    assert build_timetable_grid([x, y], SLOTS).get(Weekday.MONDAY, slot_index("09:00")) == x
    assert build_timetable_grid([y, x], SLOTS).get(Weekday.MONDAY, slot_index("09:00")) == y


def test_partial_overlap_later_activity_fills_free_cells():
    x = act("x", ["Monday"], "09:00", "11:00")
    y = act("y", ["Monday"], "10:00", "12:00")
    grid = build_timetable_grid([x, y], SLOTS)

    assert grid.get(Weekday.MONDAY, slot_index("10:00")) == x
    assert grid.get(Weekday.MONDAY, slot_index("11:00")) == y


def test_off_anchor_times_use_anchor_containment():
    a = act("a", ["Tuesday"], "09:30", "11:15")
    grid = build_timetable_grid([a], SLOTS)

    assert grid.get(Weekday.TUESDAY, slot_index("09:00")) is None
    assert grid.get(Weekday.TUESDAY, slot_index("10:00")) == a
    assert grid.get(Weekday.TUESDAY, slot_index("11:00")) == a
    assert grid.get(Weekday.TUESDAY, slot_index("12:00")) is None


def test_activity_between_anchors_occupies_no_cell():
    short = act("s", ["Friday"], "09:10", "09:50")
    grid = build_timetable_grid([short], SLOTS)
    assert len(grid.cells) == 0


def test_grid_is_deterministic():
    activities = [
        act("a", ["Monday", "Wednesday"], "09:00", "10:30"),
        act("b", ["Wednesday", "Friday"], "10:00", "11:00", ActivityCategory.TEACHING),
        act("c", ["Thursday"], "13:00", "15:00"),
    ]
    first = build_timetable_grid(activities, SLOTS)
    second = build_timetable_grid(list(activities), SLOTS)

    assert first == second
    assert first.rows() == second.rows()


def test_weekend_only_shown_with_seven_day_week():
    sat = act("sat", ["Saturday"], "10:00", "11:00")
    assert len(build_timetable_grid([sat], SLOTS, FIVE_DAY_WEEK).cells) == 0
    grid = build_timetable_grid([sat], SLOTS, SEVEN_DAY_WEEK)
    assert grid.get(Weekday.SATURDAY, slot_index("10:00")) == sat


def test_rows_follow_slot_then_day_layout():
    a = act("a", ["Tuesday"], "08:00", "09:00")
    rows = build_timetable_grid([a], SLOTS).rows()

    assert len(rows) == len(SLOTS)
    slot, cells = rows[0]
    assert str(slot) == "08:00"
    assert cells == [None, a, None, None, None]


def test_grid_cells_are_read_only():
    grid = build_timetable_grid([act("a", ["Monday"], "08:00", "09:00")], SLOTS)
    with pytest.raises(TypeError):
        grid.cells[(Weekday.MONDAY, 0)] = None
    assert isinstance(grid, TimetableGrid)


def test_slots_must_be_ascending():
    with pytest.raises(ValueError):
        build_timetable_grid([], [TimeOfDay(600), TimeOfDay(540)])
