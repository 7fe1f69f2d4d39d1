# planner_py/scheduler/grid.py
# Display-only projection of a day onto fixed-interval rows. Never persisted.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from planner_py.scheduler.domain import DayConfig, Task
from planner_py.utils.time_utils import minutes_to_time

MIN_STEP = 5


@dataclass(frozen=True)
class GridRow:
    time: str
    task: Optional[Task]
    is_task_start: bool
    row_span: int

    @property
    def available(self) -> bool:
        return self.task is None


def time_slots(config: DayConfig) -> List[int]:
    step = max(MIN_STEP, config.interval or 0)
    start, end = config.start_minutes, config.end_minutes
    if end <= start:
        return []
    return list(range(start, end + 1, step))


def project(day_tasks: Iterable[Task], config: DayConfig) -> List[GridRow]:
    tasks = list(day_tasks)
    step = max(MIN_STEP, config.interval or 0)
    day_end = config.end_minutes
    slots = time_slots(config)

    rows: List[GridRow] = []
    i = 0
    while i < len(slots):
        tm = slots[i]
        starting = next((t for t in tasks if t.start_minutes == tm), None)
        if starting is not None:
            span = max(1, math.ceil(starting.duration / step))
            rows.append(GridRow(minutes_to_time(tm), starting, True, span))
            i += span
            continue

        # terminal boundary: nothing starts here, so no trailing empty row
        if tm >= day_end:
            i += 1
            continue

        ongoing = any(t.start_minutes <= tm < t.end_minutes for t in tasks)
        if not ongoing:
            rows.append(GridRow(minutes_to_time(tm), None, False, 1))
        i += 1
    return rows
