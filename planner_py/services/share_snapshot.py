# planner_py/services/share_snapshot.py
# The only place a day's tasks leave the trust boundary: sanitized, public fields only.

from __future__ import annotations

from typing import Iterable, List

from planner_py.scheduler.errors import ValidationError
from planner_py.utils.time_utils import require_date_key

PUBLIC_FIELDS = ("name", "description", "startTime", "endTime", "duration", "color")


def public_items(tasks: Iterable) -> List[dict]:
    """Positive-duration tasks, reduced to the fields a share viewer needs."""
    out: List[dict] = []
    for task in tasks:
        if task.duration <= 0:
            continue
        data = task.to_dict()
        out.append({k: data[k] for k in PUBLIC_FIELDS})
    return out


def build_share_payload(planner, date_key: str) -> dict:
    require_date_key(date_key)
    items = public_items(planner.store.tasks_for(date_key))
    if not items:
        raise ValidationError("Nothing to share; this day has no items")
    return {
        "dateKey": date_key,
        "items": items,
        "config": planner.effective_config(date_key).to_dict(),
    }
