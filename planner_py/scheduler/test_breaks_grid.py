from planner_py.scheduler.breaks import fill_breaks, make_break
from planner_py.scheduler.config_resolver import ConfigResolver
from planner_py.scheduler.domain import Color, DayConfig, Task, TaskDraft
from planner_py.scheduler.grid import project, time_slots
from planner_py.scheduler.planner import Planner
from planner_py.scheduler.schedule_store import ScheduleStore

DAY = "2025-01-01"


def _task(name, start, end, duration, **kw):
    return Task(id=name.lower(), name=name, start_time=start, end_time=end, duration=duration, **kw)


def test_fill_breaks_around_one_task():
    cfg = DayConfig("08:00", "18:00", 30)
    out = fill_breaks([_task("Focus", "09:00", "10:00", 60)], cfg)

    spans = [(t.start_time, t.end_time, t.is_break) for t in out]
    assert spans == [("08:00", "09:00", True), ("09:00", "10:00", False), ("10:00", "18:00", True)]
    assert all(t.color is Color.CYAN and t.name == "Break" for t in out if t.is_break)


def test_fill_breaks_is_idempotent():
    cfg = DayConfig("08:00", "18:00", 30)
    once = fill_breaks([_task("Focus", "09:00", "10:00", 60)], cfg)
    twice = fill_breaks(once, cfg)
    assert twice == once


def test_fill_breaks_empty_day_is_one_break():
    out = fill_breaks([], DayConfig("08:00", "12:00", 30))
    assert len(out) == 1
    assert out[0] == make_break(480, 720)


def test_real_task_named_break_is_kept():
    cfg = DayConfig("08:00", "10:00", 30)
    named = _task("Break", "08:00", "09:00", 60)
    out = fill_breaks([named], cfg)
    assert named in out
    assert [(t.start_time, t.is_break) for t in out] == [("08:00", False), ("09:00", True)]


def test_old_breaks_are_replaced_when_tasks_move():
    cfg = DayConfig("08:00", "12:00", 30)
    first = fill_breaks([_task("A", "09:00", "10:00", 60)], cfg)
    moved = [t for t in first if not t.is_break] + [_task("B", "10:00", "11:00", 60)]
    out = fill_breaks(moved + [t for t in first if t.is_break], cfg)
    assert [(t.start_time, t.end_time) for t in out if t.is_break] == [("08:00", "09:00"), ("11:00", "12:00")]


def test_store_fill_breaks_commits():
    resolver = ConfigResolver(DayConfig("08:00", "18:00", 30))
    store = ScheduleStore(resolver)
    store.add_task(DAY, TaskDraft(name="Focus", start_time="09:00", end_time="10:00"))
    store.fill_breaks(DAY)
    assert [t.is_break for t in store.tasks_for(DAY)] == [True, False, True]


def test_time_slots_include_end_boundary():
    assert time_slots(DayConfig("08:00", "09:00", 30)) == [480, 510, 540]


def test_grid_spans_and_covered_slots():
    cfg = DayConfig("08:00", "10:00", 30)
    rows = project([_task("Focus", "08:30", "09:30", 60)], cfg)

    assert [(r.time, r.task.name if r.task else None, r.row_span) for r in rows] == [
        ("08:00", None, 1),
        ("08:30", "Focus", 2),
        ("09:30", None, 1),
    ]
    assert rows[0].available and not rows[1].available
    assert rows[1].is_task_start


def test_grid_rounds_span_up():
    cfg = DayConfig("08:00", "10:00", 30)
    rows = project([_task("Call", "08:00", "08:45", 45)], cfg)
    assert rows[0].row_span == 2
    assert [r.time for r in rows] == ["08:00", "09:00", "09:30"]


def test_grid_has_no_terminal_row():
    rows = project([], DayConfig("08:00", "09:00", 30))
    assert [r.time for r in rows] == ["08:00", "08:30"]


def test_align_times_puts_entry_on_grid():
    planner = Planner(global_config=DayConfig("08:00", "12:00", 30))
    start, end, duration = planner.align_times(DAY, "09:15", "09:40")
    assert (start, end, duration) == ("09:30", "10:00", None)

    planner.store.add_task(DAY, TaskDraft(name="Standup", start_time=start, end_time=end))
    placed = [(r.time, r.task.name) for r in planner.grid(DAY) if r.task]
    assert placed == [("09:30", "Standup")]


def test_align_times_clamps_and_rounds_duration():
    planner = Planner(global_config=DayConfig("08:00", "12:00", 30))
    assert planner.align_times(DAY, "07:10", duration=20) == ("08:00", None, 30)
    assert planner.align_times(DAY, end_time="13:00") == (None, "12:00", None)
    # collapsed range keeps one interval
    assert planner.align_times(DAY, "09:05", "09:10") == ("09:00", "09:30", None)
