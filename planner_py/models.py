# planner_py/models.py
from sqlalchemy import JSON, Column, DateTime, String

from planner_py.db import Base


class DayRow(Base):
    __tablename__ = "days"

    # YYYY-MM-DD
    date_key = Column(String(10), primary_key=True)
    # list of task dicts (camelCase keys), sorted by startTime
    items = Column(JSON, nullable=False, default=list)


class DayConfigRow(Base):
    __tablename__ = "day_configs"

    date_key = Column(String(10), primary_key=True)
    # {"startTime", "endTime", "interval"}
    config = Column(JSON, nullable=False)


class PlannerMeta(Base):
    __tablename__ = "planner_meta"

    # global config keys: startTime, endTime, interval
    key = Column(String(50), primary_key=True)
    value = Column(JSON)


class SharedLinkRow(Base):
    __tablename__ = "shared_links"

    date_key = Column(String(10), primary_key=True)
    share_id = Column(String(64), nullable=False)
    url = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False)
    # sha256 of the shared items, to tell when the link is stale
    fingerprint = Column(String(64))


class ShareEntry(Base):
    __tablename__ = "share_entries"

    # share:day:{id}
    key = Column(String(128), primary_key=True)
    value = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False)
    # naive UTC
    expires_at = Column(DateTime, nullable=True, index=True)
