# planner_py/scheduler/domain.py
"""
Planner domain model.

- Task / DayConfig are plain dataclasses; their dict forms use the camelCase
  keys of the export file, the local store and the share payload.
- Partial updates are explicit patch types (DayConfigPatch, GlobalConfigPatch,
  TaskPatch) instead of loose dicts.
- TaskDraft is a candidate task before it gets an id.
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from planner_py.scheduler.errors import ValidationError
from planner_py.utils.time_utils import minutes_to_time, parse_time, time_to_minutes

NAME_MAX = 200
DESCRIPTION_MAX = 1000
INTERVAL_MIN = 5
INTERVAL_MAX = 240
BREAK_NAME = "Break"


class Color(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    PINK = "pink"
    ORANGE = "orange"
    CYAN = "cyan"
    NEUTRAL = "neutral"


def coerce_color(value: Any) -> Color:
    try:
        return Color(value)
    except ValueError:
        raise ValidationError(f"Unknown color {value!r}") from None


def new_task_id() -> str:
    return uuid.uuid4().hex


# =========================
# Config
# =========================

@dataclass(frozen=True)
class DayConfig:
    start_time: str = "08:00"
    end_time: str = "23:30"
    interval: int = 30

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def validate(self) -> "DayConfig":
        start = parse_time(self.start_time)
        end = parse_time(self.end_time)
        if end <= start:
            raise ValidationError("Day end time must be after start time")
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise ValidationError("Interval must be a whole number of minutes")
        if not INTERVAL_MIN <= self.interval <= INTERVAL_MAX:
            raise ValidationError(f"Interval must be between {INTERVAL_MIN} and {INTERVAL_MAX} minutes")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"startTime": self.start_time, "endTime": self.end_time, "interval": self.interval}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayConfig":
        return cls(
            start_time=data["startTime"],
            end_time=data["endTime"],
            interval=int(data["interval"]),
        ).validate()


# GlobalConfig has the same shape; it is the fallback for days without an override.
GlobalConfig = DayConfig


@dataclass(frozen=True)
class DayConfigPatch:
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    interval: Optional[int] = None

    def apply(self, base: DayConfig) -> DayConfig:
        changes = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)
                   if getattr(self, f.name) is not None}
        return dataclasses.replace(base, **changes).validate()

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in dataclasses.fields(self))


class GlobalConfigPatch(DayConfigPatch):
    pass


# =========================
# Tasks
# =========================

@dataclass
class Task:
    id: str
    name: str
    start_time: str
    end_time: str
    duration: int
    color: Color = Color.BLUE
    description: str = ""
    is_break: bool = False

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "color": self.color.value,
            "isBreak": self.is_break,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description") or "",
            start_time=data["startTime"],
            end_time=data["endTime"],
            duration=int(data["duration"]),
            color=coerce_color(data.get("color", Color.BLUE.value)),
            is_break=bool(data.get("isBreak", False)),
        )


def _check_text(name: str, description: str) -> tuple[str, str]:
    name = (name or "").strip()
    description = (description or "").strip()
    if not name:
        raise ValidationError("Task name is required")
    if len(name) > NAME_MAX:
        raise ValidationError(f"Task name is longer than {NAME_MAX} characters")
    if len(description) > DESCRIPTION_MAX:
        raise ValidationError(f"Description is longer than {DESCRIPTION_MAX} characters")
    return name, description


def _resolve_range(start_time: str, end_time: Optional[str], duration: Optional[int]) -> tuple[str, str, int]:
    start = parse_time(start_time)
    if end_time is not None:
        end = parse_time(end_time)
        if duration is not None and duration != end - start:
            raise ValidationError("Duration does not match start and end time")
    elif duration is not None:
        end = start + int(duration)
    else:
        raise ValidationError("Either an end time or a duration is required")
    if end <= start:
        raise ValidationError("Invalid duration; end time must be after start time")
    if end > 23 * 60 + 59:
        raise ValidationError("Tasks cannot cross midnight")
    return minutes_to_time(start), minutes_to_time(end), end - start


@dataclass(frozen=True)
class TaskDraft:
    name: str
    start_time: str
    end_time: Optional[str] = None
    duration: Optional[int] = None
    description: str = ""
    color: Color = Color.BLUE

    def build(self, task_id: Optional[str] = None) -> Task:
        """Validate the draft and turn it into a Task with a fresh id."""
        name, description = _check_text(self.name, self.description)
        start, end, duration = _resolve_range(self.start_time, self.end_time, self.duration)
        return Task(
            id=task_id or new_task_id(),
            name=name,
            description=description,
            start_time=start,
            end_time=end,
            duration=duration,
            color=coerce_color(self.color),
        )


@dataclass(frozen=True)
class TaskPatch:
    """Partial edit of an existing task.

    Time resolution: an explicit end_time wins; otherwise an explicit duration
    is applied from the (possibly new) start; otherwise the old duration is
    kept and the task is shifted.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[int] = None
    color: Optional[Color] = None

    def apply(self, task: Task) -> Task:
        name, description = _check_text(
            self.name if self.name is not None else task.name,
            self.description if self.description is not None else task.description,
        )
        start_time = self.start_time if self.start_time is not None else task.start_time
        if self.end_time is not None or self.duration is not None:
            end_time, duration = self.end_time, self.duration
        else:
            end_time, duration = None, task.duration
        start, end, duration = _resolve_range(start_time, end_time, duration)
        return Task(
            id=task.id,
            name=name,
            description=description,
            start_time=start,
            end_time=end,
            duration=duration,
            color=coerce_color(self.color) if self.color is not None else task.color,
            is_break=task.is_break,
        )
