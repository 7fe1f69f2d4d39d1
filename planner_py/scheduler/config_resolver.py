# planner_py/scheduler/config_resolver.py
# Effective day config = per-day override if present, else the global config.

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from planner_py.scheduler.domain import DayConfig, DayConfigPatch, GlobalConfig, GlobalConfigPatch
from planner_py.utils.time_utils import require_date_key

logger = logging.getLogger("planner.config")

ChangeHook = Callable[[str], Optional[Exception]]


def _noop_hook(key: str) -> None:
    return None


class ConfigResolver:
    """Owns the global config and the sparse map of per-day overrides.

    Changing bounds never re-checks the day's tasks; callers run
    find_tasks_outside_bounds() first and warn before committing.
    """

    def __init__(
        self,
        global_config: Optional[GlobalConfig] = None,
        overrides: Optional[Dict[str, DayConfig]] = None,
        on_change: ChangeHook = _noop_hook,
    ):
        self._global = (global_config or DayConfig()).validate()
        self._overrides: Dict[str, DayConfig] = dict(overrides or {})
        self._on_change = on_change

    @property
    def global_config(self) -> GlobalConfig:
        return self._global

    def overrides(self) -> Dict[str, DayConfig]:
        return dict(self._overrides)

    def has_override(self, date_key: str) -> bool:
        return date_key in self._overrides

    def get_effective_config(self, date_key: str) -> DayConfig:
        require_date_key(date_key)
        return self._overrides.get(date_key, self._global)

    def preview_day_config(self, date_key: str, patch: DayConfigPatch) -> DayConfig:
        """The config set_day_config() would produce, without storing it."""
        return patch.apply(self.get_effective_config(date_key))

    def set_global_config(self, patch: GlobalConfigPatch) -> DayConfig:
        self._global = patch.apply(self._global)
        logger.info({"event": "global_config", "config": self._global.to_dict()})
        self._on_change("meta")
        return self._global

    def set_day_config(self, date_key: str, patch: DayConfigPatch) -> DayConfig:
        merged = self.preview_day_config(date_key, patch)
        self._overrides[date_key] = merged
        logger.info({"event": "day_config", "date": date_key, "config": merged.to_dict()})
        self._on_change("day_configs")
        return merged

    def clear_day_override(self, date_key: str) -> None:
        require_date_key(date_key)
        if self._overrides.pop(date_key, None) is not None:
            logger.info({"event": "day_config_reset", "date": date_key})
            self._on_change("day_configs")

    def replace_all(self, global_config: DayConfig, overrides: Dict[str, DayConfig]) -> None:
        """Wholesale replacement used by import."""
        self._global = global_config.validate()
        self._overrides = dict(overrides)
        self._on_change("meta")
        self._on_change("day_configs")
