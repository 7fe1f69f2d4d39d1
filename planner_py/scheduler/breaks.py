# planner_py/scheduler/breaks.py
"""
Break auto-fill.

Gaps between real tasks (and before the first / after the last one) become
"Break" tasks. Existing breaks are recognised by their is_break tag, never by
name, so a user task called "Break" is left alone. Break ids are derived from
the gap bounds, which makes a second run over an unchanged day a no-op.
"""

from __future__ import annotations

import uuid
from typing import Iterable, List

from planner_py.scheduler.domain import BREAK_NAME, Color, DayConfig, Task
from planner_py.utils.time_utils import minutes_to_time

_BREAK_NS = uuid.UUID("6f1c2a8e-4b1d-4c55-9a43-52e1f1a7b0c3")


def make_break(start: int, end: int) -> Task:
    return Task(
        id=uuid.uuid5(_BREAK_NS, f"{start}-{end}").hex,
        name=BREAK_NAME,
        description="",
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(end),
        duration=end - start,
        color=Color.CYAN,
        is_break=True,
    )


def fill_breaks(day_tasks: Iterable[Task], config: DayConfig) -> List[Task]:
    """Return the new full task list (real tasks + breaks), sorted by start."""
    day_start, day_end = config.start_minutes, config.end_minutes
    real = sorted((t for t in day_tasks if not t.is_break), key=lambda t: t.start_minutes)

    breaks: List[Task] = []
    cursor = day_start
    for task in real:
        if task.start_minutes > cursor:
            breaks.append(make_break(cursor, task.start_minutes))
        cursor = max(cursor, task.end_minutes)

    if cursor < day_end:
        breaks.append(make_break(cursor, day_end))

    return sorted(real + breaks, key=lambda t: t.start_minutes)
