# planner_py/utils/time_utils.py
# Wall-clock helpers. Times are "HH:MM" strings on a 24h clock; minute values
# are offsets from local midnight.

from __future__ import annotations

import datetime as dt
import math
import re

from planner_py.scheduler.errors import ValidationError

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

SNAP_MODES = ("nearest", "floor", "ceil")


def is_valid_time(t: str) -> bool:
    return isinstance(t, str) and bool(TIME_RE.match(t))


def parse_time(t: str) -> int:
    """Validated version of time_to_minutes()."""
    if not is_valid_time(t):
        raise ValidationError(f"Invalid time {t!r}; expected HH:MM")
    return time_to_minutes(t)


def time_to_minutes(t: str) -> int:
    """Parse HH:MM into minutes from 00:00. Callers validate the format."""
    h, m = [int(x) for x in t.split(":")]
    return h * 60 + m


def minutes_to_time(mins: int) -> str:
    """Total minutes -> "HH:MM". Hours are not wrapped past 23."""
    h, m = divmod(int(mins), 60)
    return f"{h:02d}:{m:02d}"


def to_12h(t: str) -> str:
    if not t:
        return ""
    h, m = [int(x) for x in t.split(":")]
    ampm = "PM" if h >= 12 else "AM"
    return f"{h % 12 or 12}:{m:02d} {ampm}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open [start, end) intersection; touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


def snap_to_anchor(minutes: int, step: int, anchor: int, mode: str = "nearest") -> int:
    """Snap `minutes` onto the grid of `step` minutes that starts at `anchor`."""
    if step <= 0:
        raise ValueError("step must be positive")
    rel = (minutes - anchor) / step
    if mode == "floor":
        q = math.floor(rel)
    elif mode == "ceil":
        q = math.ceil(rel)
    elif mode == "nearest":
        # halves go up, never to even
        q = math.floor(rel + 0.5)
    else:
        raise ValueError(f"Unknown snap mode {mode!r}; expected one of {SNAP_MODES}")
    return anchor + q * step


def format_date_key(d: dt.date) -> str:
    return d.strftime("%Y-%m-%d")


def is_valid_date_key(key: str) -> bool:
    if not isinstance(key, str) or not DATE_KEY_RE.match(key):
        return False
    try:
        dt.date.fromisoformat(key)
    except ValueError:
        return False
    return True


def require_date_key(key: str) -> str:
    if not is_valid_date_key(key):
        raise ValidationError(f"Invalid date key {key!r}; expected YYYY-MM-DD")
    return key
