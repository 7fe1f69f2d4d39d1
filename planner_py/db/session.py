# planner_py/db/session.py
"""
Central DB plumbing.

- get_engine() -> process-wide Engine (DATABASE_URL, SQLite by default)
- make_sessionmaker(engine) -> session factory for an explicit engine (tests, CLI --db)
- session_scope(factory) -> context manager: commit on success, rollback on exception, close
- init_db(engine) -> create the planner tables if missing
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from planner_py.db import Base
from planner_py.settings import get_settings

_ENGINE: Optional[Engine] = None


def create_planner_engine(url: str, echo: bool = False) -> Engine:
    # pool_pre_ping helps recover from stale connections
    # SQLite connections are shared with FastAPI's threadpool
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, future=True, echo=echo, connect_args=connect_args)


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)


def get_engine() -> Engine:
    """Return a process-wide Engine singleton."""
    global _ENGINE
    if _ENGINE is None:
        settings = get_settings()
        _ENGINE = create_planner_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    return _ENGINE


def init_db(engine: Optional[Engine] = None) -> Engine:
    import planner_py.models  # noqa: F401  (side-effect: registers tables on Base.metadata)

    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    return engine


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

