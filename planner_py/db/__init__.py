# planner_py/db/__init__.py
from sqlalchemy.orm import declarative_base

# Single ORM base used everywhere
Base = declarative_base()

# No DB URL here. planner_py/db/session.py reads it from settings (DATABASE_URL).
