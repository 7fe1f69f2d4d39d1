# planner_py/scheduler/schedule_store.py
"""
Schedule store: the only mutation surface for tasks.

- Each day's list is kept sorted by start time on every exit path.
- Conflicts never raise on the normal path: add_task/update_task return an
  Outcome that either says COMMITTED or NEEDS_CONFIRMATION with the conflict
  list and a token. confirm(token) applies the destructive override;
  cancel(token) drops it.
- After each commit the change hook runs (persistence). A failed save is
  reported on the Outcome as a warning; the in-memory change stays.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

from planner_py.scheduler import breaks as break_fill
from planner_py.scheduler.config_resolver import ChangeHook, ConfigResolver, _noop_hook
from planner_py.scheduler.conflicts import find_conflicts, find_tasks_outside_bounds
from planner_py.scheduler.domain import DayConfig, Task, TaskDraft, TaskPatch
from planner_py.scheduler.errors import ConflictError, NotFoundError, OutOfBoundsError
from planner_py.utils.time_utils import require_date_key

logger = logging.getLogger("planner.store")


class OutcomeStatus(str, Enum):
    COMMITTED = "committed"
    NEEDS_CONFIRMATION = "needs_confirmation"


@dataclass
class Outcome:
    status: OutcomeStatus
    task: Task
    conflicts: List[Task] = field(default_factory=list)
    token: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.status is OutcomeStatus.COMMITTED

    @property
    def needs_confirmation(self) -> bool:
        return self.status is OutcomeStatus.NEEDS_CONFIRMATION

    @property
    def conflict_ids(self) -> List[str]:
        return [t.id for t in self.conflicts]

    def raise_for_conflicts(self) -> "Outcome":
        if self.needs_confirmation:
            raise ConflictError(self.conflicts)
        return self


@dataclass(frozen=True)
class _Proposal:
    date_key: str
    candidate: Task
    conflict_ids: frozenset
    replaces_id: Optional[str] = None  # set for edits


def _sort(tasks: Iterable[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: t.start_minutes)


class ScheduleStore:
    def __init__(
        self,
        resolver: ConfigResolver,
        schedules: Optional[Dict[str, List[Task]]] = None,
        on_change: ChangeHook = _noop_hook,
    ):
        self.resolver = resolver
        self._days: Dict[str, List[Task]] = {k: _sort(v) for k, v in (schedules or {}).items()}
        self._on_change = on_change
        self._proposals: Dict[str, _Proposal] = {}

    # ---------- reads ----------
    def date_keys(self) -> List[str]:
        return sorted(self._days)

    def tasks_for(self, date_key: str) -> List[Task]:
        require_date_key(date_key)
        return list(self._days.get(date_key, []))

    def schedules(self) -> Dict[str, List[Task]]:
        return {k: list(v) for k, v in self._days.items()}

    def get_task(self, date_key: str, task_id: str) -> Task:
        for task in self.tasks_for(date_key):
            if task.id == task_id:
                return task
        raise NotFoundError(f"Task {task_id} not found on {date_key}")

    def find_conflicts(
        self, date_key: str, start_time: str, end_time: str, exclude_id: Optional[str] = None
    ) -> List[Task]:
        return find_conflicts(self.tasks_for(date_key), start_time, end_time, exclude_id)

    def tasks_outside_bounds(self, date_key: str, config: DayConfig) -> List[Task]:
        return find_tasks_outside_bounds(self.tasks_for(date_key), config)

    def pending_tokens(self) -> List[str]:
        return list(self._proposals)

    # ---------- create ----------
    def add_task(self, date_key: str, draft: TaskDraft) -> Outcome:
        require_date_key(date_key)
        candidate = draft.build()
        self._check_bounds(date_key, candidate)

        conflicts = self.find_conflicts(date_key, candidate.start_time, candidate.end_time)
        if conflicts:
            return self._propose(date_key, candidate, conflicts)

        warning = self._commit(date_key, self.tasks_for(date_key) + [candidate])
        logger.info({"event": "task_added", "date": date_key, "task_id": candidate.id})
        return Outcome(OutcomeStatus.COMMITTED, candidate, warnings=_as_list(warning))

    def override_and_add(
        self, date_key: str, candidate: Union[TaskDraft, Task], conflict_ids: Iterable[str]
    ) -> Task:
        """Delete the tasks in `conflict_ids`, then insert the candidate. Irreversible."""
        require_date_key(date_key)
        task = candidate.build() if isinstance(candidate, TaskDraft) else candidate
        self._check_bounds(date_key, task)
        self._override(date_key, task, frozenset(conflict_ids))
        return task

    # ---------- edit ----------
    def update_task(self, date_key: str, task_id: str, patch: TaskPatch) -> Outcome:
        current = self.get_task(date_key, task_id)
        updated = patch.apply(current)
        self._check_bounds(date_key, updated)

        conflicts = self.find_conflicts(date_key, updated.start_time, updated.end_time, exclude_id=task_id)
        if conflicts:
            return self._propose(date_key, updated, conflicts, replaces_id=task_id)

        tasks = [updated if t.id == task_id else t for t in self.tasks_for(date_key)]
        warning = self._commit(date_key, tasks)
        logger.info({"event": "task_updated", "date": date_key, "task_id": task_id})
        return Outcome(OutcomeStatus.COMMITTED, updated, warnings=_as_list(warning))

    def override_and_update(
        self, date_key: str, task_id: str, patch: TaskPatch, conflict_ids: Iterable[str]
    ) -> Task:
        updated = patch.apply(self.get_task(date_key, task_id))
        self._check_bounds(date_key, updated)
        self._override(date_key, updated, frozenset(conflict_ids), replaces_id=task_id)
        return updated

    # ---------- confirmation protocol ----------
    def confirm(self, token: str) -> Task:
        proposal = self._proposals.pop(token, None)
        if proposal is None:
            raise NotFoundError("Unknown or expired confirmation token")
        self._check_bounds(proposal.date_key, proposal.candidate)
        self._override(
            proposal.date_key, proposal.candidate, proposal.conflict_ids, replaces_id=proposal.replaces_id
        )
        return proposal.candidate

    def cancel(self, token: str) -> None:
        if self._proposals.pop(token, None) is None:
            raise NotFoundError("Unknown or expired confirmation token")

    # ---------- delete ----------
    def remove_task(self, date_key: str, task_id: str) -> bool:
        """Idempotent: removing an unknown id is a no-op."""
        tasks = self.tasks_for(date_key)
        kept = [t for t in tasks if t.id != task_id]
        if len(kept) == len(tasks):
            return False
        self._commit(date_key, kept)
        logger.info({"event": "task_removed", "date": date_key, "task_id": task_id})
        return True

    def clear_day(self, date_key: str) -> int:
        removed = len(self.tasks_for(date_key))
        self._days.pop(date_key, None)
        self._drop_proposals(date_key)
        self._on_change("days")
        logger.info({"event": "day_cleared", "date": date_key, "removed": removed})
        return removed

    # ---------- derived ----------
    def fill_breaks(self, date_key: str) -> List[Task]:
        config = self.resolver.get_effective_config(date_key)
        filled = break_fill.fill_breaks(self.tasks_for(date_key), config)
        self._commit(date_key, filled)
        return list(filled)

    def replace_all(self, schedules: Dict[str, List[Task]]) -> None:
        """Wholesale replacement used by import."""
        self._days = {k: _sort(v) for k, v in schedules.items()}
        self._proposals.clear()
        self._on_change("days")

    # ---------- internals ----------
    def _check_bounds(self, date_key: str, task: Task) -> None:
        config = self.resolver.get_effective_config(date_key)
        if task.start_minutes < config.start_minutes:
            raise OutOfBoundsError(f"Start time {task.start_time} is before day start {config.start_time}")
        if task.end_minutes > config.end_minutes:
            raise OutOfBoundsError(f"End time {task.end_time} is after day end {config.end_time}")

    def _propose(
        self, date_key: str, candidate: Task, conflicts: Sequence[Task], replaces_id: Optional[str] = None
    ) -> Outcome:
        token = secrets.token_urlsafe(16)
        self._proposals[token] = _Proposal(
            date_key=date_key,
            candidate=candidate,
            conflict_ids=frozenset(t.id for t in conflicts),
            replaces_id=replaces_id,
        )
        logger.info({"event": "conflict", "date": date_key, "conflicts": [t.id for t in conflicts]})
        return Outcome(OutcomeStatus.NEEDS_CONFIRMATION, candidate, conflicts=list(conflicts), token=token)

    def _override(
        self, date_key: str, candidate: Task, conflict_ids: frozenset, replaces_id: Optional[str] = None
    ) -> None:
        tasks = self.tasks_for(date_key)
        if replaces_id is not None and not any(t.id == replaces_id for t in tasks):
            raise NotFoundError(f"Task {replaces_id} not found on {date_key}")

        remaining = [t for t in tasks if t.id not in conflict_ids and t.id != replaces_id]
        residual = find_conflicts(remaining, candidate.start_time, candidate.end_time, exclude_id=candidate.id)
        if residual:
            raise ConflictError(residual, "Override does not cover every conflicting task")

        self._commit(date_key, remaining + [candidate])
        logger.info({
            "event": "override",
            "date": date_key,
            "task_id": candidate.id,
            "removed": sorted(conflict_ids & {t.id for t in tasks}),
        })

    def _commit(self, date_key: str, tasks: Iterable[Task]) -> Optional[str]:
        self._days[date_key] = _sort(tasks)
        self._drop_proposals(date_key)
        err = self._on_change("days")
        return str(err) if err is not None else None

    def _drop_proposals(self, date_key: str) -> None:
        for token in [k for k, p in self._proposals.items() if p.date_key == date_key]:
            del self._proposals[token]


def _as_list(warning: Optional[str]) -> List[str]:
    return [warning] if warning else []
