import pytest

from planner_py.scheduler.config_resolver import ConfigResolver
from planner_py.scheduler.domain import (
    Color,
    DayConfig,
    DayConfigPatch,
    GlobalConfigPatch,
    Task,
    TaskDraft,
    TaskPatch,
)
from planner_py.scheduler.errors import ConflictError, NotFoundError, OutOfBoundsError, ValidationError
from planner_py.scheduler.schedule_store import OutcomeStatus, ScheduleStore

DAY = "2025-01-01"


@pytest.fixture
def store():
    hooks = []
    resolver = ConfigResolver(DayConfig("08:00", "18:00", 30))
    s = ScheduleStore(resolver, on_change=lambda key: hooks.append(key))
    s.hooks = hooks
    return s


def _add(store, name, start, end):
    outcome = store.add_task(DAY, TaskDraft(name=name, start_time=start, end_time=end))
    assert outcome.committed
    return outcome.task


def test_add_then_conflict_then_override(store):
    first = _add(store, "First", "09:00", "10:00")

    outcome = store.add_task(DAY, TaskDraft(name="Second", start_time="09:30", end_time="10:30"))
    assert outcome.status is OutcomeStatus.NEEDS_CONFIRMATION
    assert outcome.conflict_ids == [first.id]
    # nothing changed yet
    assert [t.id for t in store.tasks_for(DAY)] == [first.id]

    second = store.override_and_add(DAY, outcome.task, outcome.conflict_ids)
    assert [t.id for t in store.tasks_for(DAY)] == [second.id]
    assert second.name == "Second"


def test_touching_boundary_is_not_a_conflict(store):
    _add(store, "Morning", "09:00", "10:00")
    assert store.find_conflicts(DAY, "10:00", "11:00") == []
    outcome = store.add_task(DAY, TaskDraft(name="Next", start_time="10:00", duration=60))
    assert outcome.committed


def test_day_stays_sorted(store):
    _add(store, "Late", "15:00", "16:00")
    _add(store, "Early", "08:00", "08:30")
    _add(store, "Middle", "12:00", "12:45")
    assert [t.name for t in store.tasks_for(DAY)] == ["Early", "Middle", "Late"]


def test_duration_or_end_time(store):
    t = store.add_task(DAY, TaskDraft(name="Deep work", start_time="09:00", duration=90)).task
    assert (t.end_time, t.duration) == ("10:30", 90)
    with pytest.raises(ValidationError):
        store.add_task(DAY, TaskDraft(name="Bad", start_time="11:00", end_time="11:30", duration=45))
    with pytest.raises(ValidationError):
        store.add_task(DAY, TaskDraft(name="Bad", start_time="11:00", end_time="11:00"))
    with pytest.raises(ValidationError):
        store.add_task(DAY, TaskDraft(name="  ", start_time="11:00", duration=30))


def test_out_of_bounds_rejected(store):
    with pytest.raises(OutOfBoundsError):
        store.add_task(DAY, TaskDraft(name="Too early", start_time="07:30", duration=60))
    with pytest.raises(OutOfBoundsError):
        store.add_task(DAY, TaskDraft(name="Too late", start_time="17:30", duration=60))
    assert store.tasks_for(DAY) == []


def test_edit_excludes_itself(store):
    task = _add(store, "Focus", "09:00", "10:00")
    outcome = store.update_task(DAY, task.id, TaskPatch(start_time="09:30"))
    assert outcome.committed
    moved = store.get_task(DAY, task.id)
    # shifted, duration kept
    assert (moved.start_time, moved.end_time, moved.duration) == ("09:30", "10:30", 60)


def test_edit_conflict_confirm(store):
    a = _add(store, "A", "09:00", "10:00")
    b = _add(store, "B", "10:00", "11:00")

    outcome = store.update_task(DAY, b.id, TaskPatch(start_time="09:30", color=Color.PINK))
    assert outcome.needs_confirmation
    assert outcome.conflict_ids == [a.id]

    updated = store.confirm(outcome.token)
    tasks = store.tasks_for(DAY)
    assert [t.id for t in tasks] == [b.id]
    assert updated.start_time == "09:30" and tasks[0].color is Color.PINK


def test_cancel_and_unknown_tokens(store):
    _add(store, "A", "09:00", "10:00")
    outcome = store.add_task(DAY, TaskDraft(name="B", start_time="09:00", duration=30))
    store.cancel(outcome.token)
    assert store.pending_tokens() == []
    with pytest.raises(NotFoundError):
        store.confirm(outcome.token)
    with pytest.raises(NotFoundError):
        store.cancel("nope")


def test_mutation_invalidates_pending_token(store):
    a = _add(store, "A", "09:00", "10:00")
    outcome = store.add_task(DAY, TaskDraft(name="B", start_time="09:00", duration=30))
    store.remove_task(DAY, a.id)
    with pytest.raises(NotFoundError):
        store.confirm(outcome.token)


def test_override_must_cover_every_conflict(store):
    a = _add(store, "A", "09:00", "10:00")
    _add(store, "B", "10:00", "11:00")
    with pytest.raises(ConflictError) as exc:
        store.override_and_add(DAY, TaskDraft(name="C", start_time="09:30", end_time="10:30"), [a.id])
    assert [t.name for t in exc.value.conflicts] == ["B"]
    assert [t.name for t in store.tasks_for(DAY)] == ["A", "B"]


def test_raise_for_conflicts(store):
    _add(store, "A", "09:00", "10:00")
    outcome = store.add_task(DAY, TaskDraft(name="B", start_time="09:15", duration=15))
    with pytest.raises(ConflictError):
        outcome.raise_for_conflicts()


def test_remove_is_idempotent(store):
    task = _add(store, "A", "09:00", "10:00")
    assert store.remove_task(DAY, task.id) is True
    assert store.remove_task(DAY, task.id) is False
    assert store.remove_task(DAY, "missing") is False
    with pytest.raises(NotFoundError):
        store.get_task(DAY, task.id)


def test_clear_day(store):
    _add(store, "A", "09:00", "10:00")
    _add(store, "B", "11:00", "12:00")
    assert store.clear_day(DAY) == 2
    assert store.tasks_for(DAY) == []
    assert store.date_keys() == []


def test_change_hook_runs_after_each_commit(store):
    task = _add(store, "A", "09:00", "10:00")
    store.remove_task(DAY, task.id)
    assert store.hooks == ["days", "days"]


def test_invalid_date_key(store):
    with pytest.raises(ValidationError):
        store.add_task("2025-13-01", TaskDraft(name="A", start_time="09:00", duration=30))


def test_effective_config_override():
    resolver = ConfigResolver(DayConfig(start_time="08:00"))
    assert resolver.get_effective_config(DAY).start_time == "08:00"

    resolver.set_day_config(DAY, DayConfigPatch(start_time="09:00"))
    assert resolver.get_effective_config(DAY).start_time == "09:00"
    assert resolver.get_effective_config("2025-01-02").start_time == "08:00"

    # a global change does not leak into an overridden day
    resolver.set_global_config(GlobalConfigPatch(interval=15))
    assert resolver.get_effective_config(DAY).interval == 30
    assert resolver.get_effective_config("2025-01-02").interval == 15

    resolver.clear_day_override(DAY)
    assert resolver.get_effective_config(DAY).start_time == "08:00"


def test_config_validation():
    resolver = ConfigResolver()
    with pytest.raises(ValidationError):
        resolver.set_global_config(GlobalConfigPatch(end_time="07:00"))
    with pytest.raises(ValidationError):
        resolver.set_day_config(DAY, DayConfigPatch(interval=3))
    assert resolver.global_config == DayConfig()
    assert not resolver.has_override(DAY)


def test_tasks_outside_bounds(store):
    _add(store, "Early", "08:00", "09:00")
    _add(store, "Late", "17:00", "18:00")
    narrowed = DayConfig("08:30", "17:30", 30)
    assert [t.name for t in store.tasks_outside_bounds(DAY, narrowed)] == ["Early", "Late"]


def test_task_dict_uses_camel_case():
    t = Task(id="x", name="A", start_time="09:00", end_time="09:30", duration=30)
    data = t.to_dict()
    assert data["startTime"] == "09:00" and data["isBreak"] is False
    assert Task.from_dict(data) == t


def test_override_and_update(store):
    a = _add(store, "A", "09:00", "10:00")
    b = _add(store, "B", "10:00", "11:00")
    updated = store.override_and_update(DAY, b.id, TaskPatch(start_time="09:00", end_time="09:45"), [a.id])
    assert store.tasks_for(DAY) == [updated]
    assert updated.id == b.id and updated.duration == 45
