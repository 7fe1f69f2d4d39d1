# planner_py/db/planner_repo.py
# Local durable store for the planner: replace-all writes per table, full reads on load.

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine

from planner_py.db.session import get_engine, init_db, make_sessionmaker, session_scope
from planner_py.models import DayConfigRow, DayRow, PlannerMeta, SharedLinkRow


@dataclass
class PlannerRecord:
    days: Dict[str, List[dict]] = field(default_factory=dict)
    day_configs: Dict[str, dict] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    shared_links: Dict[str, dict] = field(default_factory=dict)


class PlannerRepository:
    def __init__(self, engine: Optional[Engine] = None, create: bool = True):
        self.engine = engine or get_engine()
        if create:
            init_db(self.engine)
        self._factory = make_sessionmaker(self.engine)

    # ---------- read ----------
    def load(self) -> PlannerRecord:
        rec = PlannerRecord()
        with session_scope(self._factory) as s:
            for row in s.execute(select(DayRow)).scalars():
                rec.days[row.date_key] = list(row.items or [])
            for row in s.execute(select(DayConfigRow)).scalars():
                if row.config:
                    rec.day_configs[row.date_key] = dict(row.config)
            for row in s.execute(select(PlannerMeta)).scalars():
                rec.meta[row.key] = row.value
            for row in s.execute(select(SharedLinkRow)).scalars():
                rec.shared_links[row.date_key] = {
                    "id": row.share_id,
                    "url": row.url,
                    "createdAt": row.created_at,
                    "fingerprint": row.fingerprint,
                }
        return rec

    # ---------- write (clear + bulk put) ----------
    def replace_days(self, days: Mapping[str, List[dict]]) -> None:
        with session_scope(self._factory) as s:
            s.execute(delete(DayRow))
            s.add_all([DayRow(date_key=k, items=list(v)) for k, v in days.items()])

    def replace_day_configs(self, configs: Mapping[str, dict]) -> None:
        with session_scope(self._factory) as s:
            s.execute(delete(DayConfigRow))
            s.add_all([DayConfigRow(date_key=k, config=dict(v)) for k, v in configs.items()])

    def put_meta(self, values: Mapping[str, Any]) -> None:
        with session_scope(self._factory) as s:
            for key, value in values.items():
                s.merge(PlannerMeta(key=key, value=value))

    def replace_shared_links(self, links: Mapping[str, dict]) -> None:
        with session_scope(self._factory) as s:
            s.execute(delete(SharedLinkRow))
            s.add_all([
                SharedLinkRow(
                    date_key=k,
                    share_id=v["id"],
                    url=v["url"],
                    created_at=_as_datetime(v["createdAt"]),
                    fingerprint=v.get("fingerprint"),
                )
                for k, v in links.items()
            ])


def _as_datetime(value: Any) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.fromisoformat(str(value))
