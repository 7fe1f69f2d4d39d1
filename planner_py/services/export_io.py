# planner_py/services/export_io.py
"""
Export / import of the whole planner as one JSON document:

    {"exportedAt": ISO-8601, "planner": {startTime, endTime, interval},
     "days": [{"dateKey": "YYYY-MM-DD", "items": [Task, ...]}, ...]}

Import is destructive: the document is validated in full first, then the
global config and the schedule map are replaced wholesale. Per-day overrides
are not part of the document and are cleared.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from planner_py.scheduler.domain import (
    DESCRIPTION_MAX,
    INTERVAL_MAX,
    INTERVAL_MIN,
    NAME_MAX,
    Color,
    DayConfig,
    Task,
)
from planner_py.scheduler.errors import ImportFormatError
from planner_py.utils.time_utils import is_valid_date_key, is_valid_time, overlaps, time_to_minutes

logger = logging.getLogger("planner.export")


# ---------- Schemas ----------
class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TaskIn(_Camel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=NAME_MAX)
    description: Optional[str] = Field("", max_length=DESCRIPTION_MAX)
    start_time: str = Field(..., alias="startTime")
    end_time: str = Field(..., alias="endTime")
    duration: int = Field(..., ge=0)
    color: Color = Color.BLUE
    is_break: bool = Field(False, alias="isBreak")

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name is required")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        if not is_valid_time(v):
            raise ValueError("expected HH:MM")
        return v

    @model_validator(mode="after")
    def _consistent(self):
        if time_to_minutes(self.end_time) - time_to_minutes(self.start_time) != self.duration:
            raise ValueError("duration must equal endTime - startTime")
        return self

    def to_task(self) -> Task:
        return Task(
            id=self.id,
            name=self.name.strip(),
            description=(self.description or "").strip(),
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.duration,
            color=self.color,
            is_break=self.is_break,
        )


class PlannerConfigIn(_Camel):
    start_time: str = Field(..., alias="startTime")
    end_time: str = Field(..., alias="endTime")
    interval: int = Field(..., ge=INTERVAL_MIN, le=INTERVAL_MAX)

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        if not is_valid_time(v):
            raise ValueError("expected HH:MM")
        return v

    @model_validator(mode="after")
    def _ordered(self):
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        return self

    def to_config(self) -> DayConfig:
        return DayConfig(self.start_time, self.end_time, self.interval)


class DayIn(_Camel):
    date_key: str = Field(..., alias="dateKey")
    items: List[TaskIn]

    @field_validator("date_key")
    @classmethod
    def _date(cls, v: str) -> str:
        if not is_valid_date_key(v):
            raise ValueError("expected YYYY-MM-DD")
        return v

    @model_validator(mode="after")
    def _no_overlap(self):
        ids = [i.id for i in self.items]
        if len(set(ids)) != len(ids):
            raise ValueError(f"duplicate task ids on {self.date_key}")
        spans = sorted(
            (time_to_minutes(i.start_time), time_to_minutes(i.end_time))
            for i in self.items if i.duration > 0
        )
        for (a0, a1), (b0, b1) in zip(spans, spans[1:]):
            if overlaps(a0, a1, b0, b1):
                raise ValueError(f"overlapping tasks on {self.date_key}")
        return self


class ExportDocument(_Camel):
    exported_at: str = Field(..., alias="exportedAt")
    planner: PlannerConfigIn
    days: List[DayIn]

    @model_validator(mode="after")
    def _unique_days(self):
        keys = [d.date_key for d in self.days]
        if len(set(keys)) != len(keys):
            raise ValueError("duplicate dateKey")
        return self


# ---------- Export ----------
def export_data(planner, now: Optional[dt.datetime] = None) -> dict:
    now = now or dt.datetime.now(dt.timezone.utc)
    days = []
    for key in planner.store.date_keys():
        items = [t.to_dict() for t in planner.store.tasks_for(key) if t.duration > 0]
        if items:
            days.append({"dateKey": key, "items": items})
    return {
        "exportedAt": now.isoformat().replace("+00:00", "Z"),
        "planner": planner.resolver.global_config.to_dict(),
        "days": days,
    }


def export_to_file(planner, path: str | Path) -> Path:
    path = Path(path)
    path.write_text(json.dumps(export_data(planner), indent=2), encoding="utf-8")
    logger.info({"event": "exported", "path": str(path)})
    return path


# ---------- Import ----------
def parse_export(data: Any) -> ExportDocument:
    try:
        if isinstance(data, (str, bytes)):
            return ExportDocument.model_validate_json(data)
        return ExportDocument.model_validate(data)
    except PydanticValidationError as e:
        raise ImportFormatError(f"Invalid export format: {e.error_count()} error(s): {e.errors()[0]['msg']}") from e


def import_data(planner, data: Any) -> int:
    """Replace the planner's global config and schedules; returns the number of days imported."""
    doc = parse_export(data)

    schedules = {d.date_key: [i.to_task() for i in d.items] for d in doc.days}
    planner.resolver.replace_all(doc.planner.to_config(), {})
    planner.store.replace_all(schedules)
    logger.info({"event": "imported", "days": len(schedules)})
    return len(schedules)


def import_from_file(planner, path: str | Path) -> int:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Cannot read {path}: {e}") from e
    return import_data(planner, raw)
