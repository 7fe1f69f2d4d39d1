# planner_py/services/persistence.py
"""
Write-behind queue between the in-memory planner and the durable store.

enqueue() keeps only the latest pending payload per key (days, day_configs,
meta, shared_links). flush() writes every pending key; keys whose write fails
stay pending so the next successful flush includes them, and a
PersistenceError names them. The in-memory state is never rolled back.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping

from planner_py.scheduler.errors import PersistenceError

logger = logging.getLogger("planner.persistence")

Writer = Callable[[Any], None]


class WriteBehindQueue:
    def __init__(self, writers: Mapping[str, Writer], auto_flush: bool = True):
        self._writers: Dict[str, Writer] = dict(writers)
        self._pending: Dict[str, Any] = {}
        self.auto_flush = auto_flush

    @property
    def pending_keys(self) -> List[str]:
        return sorted(self._pending)

    def stage(self, key: str, payload: Any) -> None:
        if key not in self._writers:
            raise KeyError(f"No writer registered for {key!r}")
        self._pending[key] = payload  # coalesce: latest wins

    def enqueue(self, key: str, payload: Any) -> None:
        self.stage(key, payload)
        if self.auto_flush:
            self.flush()

    def flush(self) -> None:
        failed: Dict[str, Exception] = {}
        for key in list(self._pending):
            payload = self._pending[key]
            try:
                self._writers[key](payload)
            except Exception as e:
                failed[key] = e
                continue
            # a newer payload may have been queued by the writer; keep it
            if self._pending.get(key) is payload:
                del self._pending[key]

        if failed:
            first = next(iter(failed.values()))
            logger.warning({"event": "save_failed", "keys": sorted(failed), "error": repr(first)})
            raise PersistenceError(failed.keys(), first)


def repository_writers(repository) -> Dict[str, Writer]:
    """Writers for a PlannerRepository-shaped object."""
    return {
        "days": repository.replace_days,
        "day_configs": repository.replace_day_configs,
        "meta": repository.put_meta,
        "shared_links": repository.replace_shared_links,
    }
