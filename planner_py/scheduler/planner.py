# planner_py/scheduler/planner.py
"""
Planner: the single owned state object.

Holds the ConfigResolver, the ScheduleStore and the shared-link map, and
wires their change hooks into the write-behind queue of a PlannerRepository.
Pass it by reference; there is no module-level instance.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from planner_py.scheduler.conflicts import find_tasks_outside_bounds
from planner_py.scheduler.config_resolver import ConfigResolver
from planner_py.scheduler.domain import DayConfig, DayConfigPatch, GlobalConfigPatch, Task
from planner_py.scheduler.errors import PersistenceError, PlannerError
from planner_py.scheduler.grid import GridRow, project
from planner_py.scheduler.schedule_store import ScheduleStore
from planner_py.services.persistence import WriteBehindQueue, repository_writers
from planner_py.services.share_snapshot import public_items
from planner_py.utils.time_utils import minutes_to_time, parse_time, require_date_key, snap_to_anchor

logger = logging.getLogger("planner")

META_KEYS = ("startTime", "endTime", "interval")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


@dataclass
class SharedLink:
    share_id: str
    url: str
    created_at: dt.datetime
    fingerprint: Optional[str] = None

    def is_likely_expired(self, now: Optional[dt.datetime] = None, expiry_hours: int = 25) -> bool:
        now = now or _utcnow()
        return now > self.created_at + dt.timedelta(hours=expiry_hours)

    def to_dict(self) -> dict:
        return {
            "id": self.share_id,
            "url": self.url,
            "createdAt": self.created_at.isoformat(),
            "fingerprint": self.fingerprint,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SharedLink":
        created = data["createdAt"]
        if not isinstance(created, dt.datetime):
            created = dt.datetime.fromisoformat(str(created))
        return cls(share_id=data["id"], url=data["url"], created_at=created, fingerprint=data.get("fingerprint"))


class Planner:
    def __init__(
        self,
        repository=None,
        global_config: Optional[DayConfig] = None,
        schedules: Optional[Dict[str, List[Task]]] = None,
        day_configs: Optional[Dict[str, DayConfig]] = None,
        shared_links: Optional[Dict[str, SharedLink]] = None,
        auto_flush: bool = True,
    ):
        self.repository = repository
        self.queue = WriteBehindQueue(repository_writers(repository), auto_flush) if repository else None
        self.resolver = ConfigResolver(global_config, day_configs, on_change=self._persist)
        self.store = ScheduleStore(self.resolver, schedules, on_change=self._persist)
        self._shared_links: Dict[str, SharedLink] = dict(shared_links or {})
        self._warnings: List[str] = []

    # ---------- load / save ----------
    @classmethod
    def load(cls, repository, auto_flush: bool = True) -> "Planner":
        rec = repository.load()

        schedules: Dict[str, List[Task]] = {}
        for key, items in rec.days.items():
            try:
                schedules[key] = [Task.from_dict(i) for i in items]
            except (KeyError, TypeError, ValueError, PlannerError) as e:
                logger.warning({"event": "load_skip_day", "date": key, "error": repr(e)})

        day_configs: Dict[str, DayConfig] = {}
        for key, cfg in rec.day_configs.items():
            try:
                day_configs[key] = DayConfig.from_dict(cfg)
            except (KeyError, TypeError, ValueError, PlannerError) as e:
                logger.warning({"event": "load_skip_day_config", "date": key, "error": repr(e)})

        global_config = DayConfig()
        if all(k in rec.meta for k in META_KEYS):
            try:
                global_config = DayConfig.from_dict(rec.meta)
            except (TypeError, ValueError, PlannerError) as e:
                logger.warning({"event": "load_default_global", "error": repr(e)})

        links = {k: SharedLink.from_dict(v) for k, v in rec.shared_links.items()}
        logger.info({"event": "loaded", "days": len(schedules), "overrides": len(day_configs)})
        return cls(repository, global_config, schedules, day_configs, links, auto_flush=auto_flush)

    def _snapshot(self, key: str):
        if key == "days":
            return {k: [t.to_dict() for t in v] for k, v in self.store.schedules().items()}
        if key == "day_configs":
            return {k: v.to_dict() for k, v in self.resolver.overrides().items()}
        if key == "meta":
            return self.resolver.global_config.to_dict()
        if key == "shared_links":
            return {k: v.to_dict() for k, v in self._shared_links.items()}
        raise KeyError(key)

    def _persist(self, key: str) -> Optional[PersistenceError]:
        if self.queue is None:
            return None
        try:
            self.queue.enqueue(key, self._snapshot(key))
        except PersistenceError as e:
            self._warnings.append(str(e))
            return e
        return None

    def save(self) -> None:
        """Queue every table and flush; raises PersistenceError on failure."""
        if self.queue is None:
            return
        for key in ("days", "day_configs", "meta", "shared_links"):
            self.queue.stage(key, self._snapshot(key))
        self.queue.flush()

    def drain_warnings(self) -> List[str]:
        out, self._warnings = self._warnings, []
        return out

    # ---------- config helpers ----------
    def effective_config(self, date_key: str) -> DayConfig:
        return self.resolver.get_effective_config(date_key)

    def preview_day_config(self, date_key: str, patch: DayConfigPatch) -> Tuple[DayConfig, List[Task]]:
        """First phase of a bounds change: the new config and the tasks it would strand."""
        new_config = self.resolver.preview_day_config(date_key, patch)
        return new_config, find_tasks_outside_bounds(self.store.tasks_for(date_key), new_config)

    def preview_global_config(self, patch: GlobalConfigPatch) -> Tuple[DayConfig, Dict[str, List[Task]]]:
        new_config = patch.apply(self.resolver.global_config)
        stranded: Dict[str, List[Task]] = {}
        for key in self.store.date_keys():
            if self.resolver.has_override(key):
                continue
            outside = find_tasks_outside_bounds(self.store.tasks_for(key), new_config)
            if outside:
                stranded[key] = outside
        return new_config, stranded

    def align_times(
        self,
        date_key: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> Tuple[Optional[str], Optional[str], Optional[int]]:
        """Snap user-entered times onto the day's interval grid, clamped to its window.

        Missing values stay None. A snapped end that is not after the snapped start
        moves one interval past it; a duration becomes a whole number of intervals.
        """
        cfg = self.effective_config(date_key)
        step = cfg.interval

        def snap(t: str) -> int:
            m = snap_to_anchor(parse_time(t), step, cfg.start_minutes)
            return min(max(m, cfg.start_minutes), cfg.end_minutes)

        start = snap(start_time) if start_time is not None else None
        end = snap(end_time) if end_time is not None else None
        if start is not None and end is not None and end <= start:
            end = min(start + step, cfg.end_minutes)
        if duration is not None:
            duration = max(step, snap_to_anchor(int(duration), step, 0))
        return (
            minutes_to_time(start) if start is not None else None,
            minutes_to_time(end) if end is not None else None,
            duration,
        )

    def grid(self, date_key: str) -> List[GridRow]:
        return project(self.store.tasks_for(date_key), self.effective_config(date_key))

    # ---------- shared links ----------
    def share_fingerprint(self, date_key: str) -> str:
        items = public_items(self.store.tasks_for(date_key))
        raw = json.dumps(items, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def set_shared_link(
        self,
        date_key: str,
        share_id: str,
        url: str,
        fingerprint: Optional[str] = None,
        created_at: Optional[dt.datetime] = None,
    ) -> SharedLink:
        require_date_key(date_key)
        link = SharedLink(share_id, url, created_at or _utcnow(), fingerprint or self.share_fingerprint(date_key))
        self._shared_links[date_key] = link
        self._persist("shared_links")
        return link

    def get_shared_link(self, date_key: str) -> Optional[SharedLink]:
        return self._shared_links.get(date_key)

    def remove_shared_link(self, date_key: str) -> None:
        if self._shared_links.pop(date_key, None) is not None:
            self._persist("shared_links")

    def has_schedule_changed(self, date_key: str) -> bool:
        """True when the day differs from what its current share link shows."""
        link = self.get_shared_link(date_key)
        if link is None or link.fingerprint is None:
            return False
        return link.fingerprint != self.share_fingerprint(date_key)
