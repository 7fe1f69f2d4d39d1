# planner_py/scheduler/conflicts.py
# Single overlap check used by both the create and the edit paths.

from __future__ import annotations

from typing import Iterable, List, Optional

from planner_py.scheduler.domain import DayConfig, Task
from planner_py.utils.time_utils import overlaps, time_to_minutes


def find_conflicts(
    day_tasks: Iterable[Task],
    start_time: str,
    end_time: str,
    exclude_id: Optional[str] = None,
) -> List[Task]:
    """Return every task overlapping [start_time, end_time), in the day's order.

    `exclude_id` skips one task so an edit never conflicts with its own prior version.
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    out: List[Task] = []
    for task in day_tasks:
        if exclude_id is not None and task.id == exclude_id:
            continue
        if overlaps(start, end, task.start_minutes, task.end_minutes):
            out.append(task)
    return out


def find_tasks_outside_bounds(day_tasks: Iterable[Task], config: DayConfig) -> List[Task]:
    """Tasks that would fall outside `config`'s window if it were applied."""
    day_start, day_end = config.start_minutes, config.end_minutes
    return [t for t in day_tasks if t.start_minutes < day_start or t.end_minutes > day_end]
