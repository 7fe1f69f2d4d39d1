# planner_py/scheduler/errors.py
# Every error here is recoverable at the operation boundary.

from __future__ import annotations

from typing import Iterable, List


class PlannerError(Exception):
    pass


class ValidationError(PlannerError):
    """Empty name, malformed time, non-positive duration, bad config."""


class OutOfBoundsError(PlannerError):
    """Candidate time range falls outside the day's window."""


class NotFoundError(PlannerError):
    pass


class ConflictError(PlannerError):
    """Raised only when a caller asks for it (Outcome.raise_for_conflicts)
    or when an override would still leave overlapping tasks."""

    def __init__(self, conflicts: Iterable, message: str = "Time conflict detected"):
        self.conflicts: List = list(conflicts)
        super().__init__(message)


class PersistenceError(PlannerError):
    def __init__(self, keys: Iterable[str], cause: Exception | None = None):
        self.keys = sorted(keys)
        self.cause = cause
        super().__init__(f"Failed to save {', '.join(self.keys)}: {cause}")


class ImportFormatError(PlannerError):
    pass
