# planner_py/db/share_kv.py
# Key-value store with per-key expiry for share snapshots. Expired keys read as
# missing and are purged on access.

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Optional

from sqlalchemy import delete
from sqlalchemy.engine import Engine

from planner_py.db.session import get_engine, init_db, make_sessionmaker, session_scope
from planner_py.models import ShareEntry

SHARE_KEY_PREFIX = "share:day:"


def share_key(share_id: str) -> str:
    return f"{SHARE_KEY_PREFIX}{share_id}"


def utcnow() -> dt.datetime:
    # naive UTC; SQLite drops tzinfo anyway
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


class ShareKV:
    def __init__(
        self,
        engine: Optional[Engine] = None,
        clock: Callable[[], dt.datetime] = utcnow,
        create: bool = True,
    ):
        self.engine = engine or get_engine()
        if create:
            init_db(self.engine)
        self._factory = make_sessionmaker(self.engine)
        self._clock = clock

    def set(self, key: str, value: Any, ex: Optional[int] = None) -> None:
        now = self._clock()
        expires = now + dt.timedelta(seconds=ex) if ex else None
        with session_scope(self._factory) as s:
            s.merge(ShareEntry(key=key, value=value, created_at=now, expires_at=expires))

    def get(self, key: str) -> Optional[Any]:
        with session_scope(self._factory) as s:
            row = s.get(ShareEntry, key)
            if row is None:
                return None
            if row.expires_at is not None and row.expires_at <= self._clock():
                s.delete(row)
                return None
            return row.value

    def delete(self, key: str) -> bool:
        """True if a live entry was removed."""
        with session_scope(self._factory) as s:
            row = s.get(ShareEntry, key)
            if row is None:
                return False
            live = row.expires_at is None or row.expires_at > self._clock()
            s.delete(row)
            return live

    def purge_expired(self) -> int:
        with session_scope(self._factory) as s:
            res = s.execute(delete(ShareEntry).where(ShareEntry.expires_at <= self._clock()))
            return res.rowcount or 0
