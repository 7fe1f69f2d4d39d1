# planner_py/cli.py
"""
dayplanner: command-line front end over the local planner database.

Examples:
  dayplanner add 2025-01-01 "Deep work" 09:00 --duration 90
  dayplanner add 2025-01-01 "Standup" 09:30 --end 10:00 --override
  dayplanner show 2025-01-01
  dayplanner config --date 2025-01-01 --start 09:00
  dayplanner export planner.json

Start and end times given to add/edit are snapped to the day's interval grid.
"""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from planner_py.db.planner_repo import PlannerRepository
from planner_py.db.session import create_planner_engine
from planner_py.integrations.share_client import ShareClient, ShareError
from planner_py.scheduler.domain import Color, DayConfigPatch, GlobalConfigPatch, Task, TaskDraft, TaskPatch
from planner_py.scheduler.errors import PlannerError
from planner_py.scheduler.planner import Planner
from planner_py.services.export_io import export_to_file, import_from_file
from planner_py.settings import get_settings
from planner_py.utils.time_utils import format_date_key, to_12h

load_dotenv()

logger = logging.getLogger("planner.cli")

EXIT_ERROR = 1
EXIT_CONFLICT = 3


def _fmt_task(t: Task) -> str:
    tag = " [break]" if t.is_break else ""
    return f"{t.start_time}-{t.end_time}  {t.name}{tag}  ({t.duration}m, {t.color.value})  id={t.id}"


def _print_conflicts(conflicts: List[Task]) -> None:
    print("Time conflict with:")
    for t in conflicts:
        print(f"  {_fmt_task(t)}")
    print("Re-run with --override to replace them.")


def _warn(planner: Planner) -> None:
    for w in planner.drain_warnings():
        print(f"warning: {w}", file=sys.stderr)


# ---------- commands ----------
def cmd_show(planner: Planner, args) -> int:
    cfg = planner.effective_config(args.date)
    source = "day override" if planner.resolver.has_override(args.date) else "global"
    if args.json:
        rows = [
            {"time": r.time, "rowSpan": r.row_span, "task": r.task.to_dict() if r.task else None}
            for r in planner.grid(args.date)
        ]
        print(json.dumps({"dateKey": args.date, "config": cfg.to_dict(), "rows": rows}, indent=2))
        return 0
    print(f"# {args.date}  {cfg.start_time}-{cfg.end_time} every {cfg.interval}m ({source})")
    for row in planner.grid(args.date):
        label = to_12h(row.time).rjust(8)
        if row.task is None:
            print(f"{label}  ·")
        else:
            print(f"{label}  {row.task.name}  [{row.task.start_time}-{row.task.end_time}] x{row.row_span}")

    link = planner.get_shared_link(args.date)
    if link is not None:
        notes = []
        if link.is_likely_expired(expiry_hours=get_settings().SHARE_LINK_EXPIRY_HOURS):
            notes.append("likely expired")
        if planner.has_schedule_changed(args.date):
            notes.append("schedule changed since sharing")
        print(f"shared: {link.url}" + (f" ({', '.join(notes)})" if notes else ""))
    return 0


def cmd_add(planner: Planner, args) -> int:
    start, end, duration = planner.align_times(args.date, args.start, args.end, args.duration)
    draft = TaskDraft(
        name=args.name,
        start_time=start,
        end_time=end,
        duration=duration,
        description=args.desc or "",
        color=Color(args.color),
    )
    outcome = planner.store.add_task(args.date, draft)
    if outcome.needs_confirmation:
        if not args.override:
            _print_conflicts(outcome.conflicts)
            planner.store.cancel(outcome.token)
            return EXIT_CONFLICT
        task = planner.store.confirm(outcome.token)
        print(f"Replaced {len(outcome.conflicts)} task(s).")
    else:
        task = outcome.task
    print(f"Added {_fmt_task(task)}")
    return 0


def cmd_edit(planner: Planner, args) -> int:
    start, end, duration = planner.align_times(args.date, args.start, args.end, args.duration)
    patch = TaskPatch(
        name=args.name,
        description=args.desc,
        start_time=start,
        end_time=end,
        duration=duration,
        color=Color(args.color) if args.color else None,
    )
    outcome = planner.store.update_task(args.date, args.task_id, patch)
    if outcome.needs_confirmation:
        if not args.override:
            _print_conflicts(outcome.conflicts)
            planner.store.cancel(outcome.token)
            return EXIT_CONFLICT
        task = planner.store.confirm(outcome.token)
    else:
        task = outcome.task
    print(f"Updated {_fmt_task(task)}")
    return 0


def cmd_remove(planner: Planner, args) -> int:
    if planner.store.remove_task(args.date, args.task_id):
        print("Removed.")
    else:
        print("Nothing to remove.")
    return 0


def cmd_clear(planner: Planner, args) -> int:
    n = planner.store.clear_day(args.date)
    print(f"Cleared {n} task(s) from {args.date}.")
    return 0


def cmd_breaks(planner: Planner, args) -> int:
    tasks = planner.store.fill_breaks(args.date)
    for t in tasks:
        print(_fmt_task(t))
    return 0


def cmd_config(planner: Planner, args) -> int:
    if args.reset:
        if not args.date:
            print("--reset needs --date", file=sys.stderr)
            return EXIT_ERROR
        planner.resolver.clear_day_override(args.date)
        print(f"{args.date} now follows the global config.")
        return 0

    patch_fields = dict(start_time=args.start, end_time=args.end, interval=args.interval)
    if args.date:
        patch = DayConfigPatch(**patch_fields)
        if patch.is_empty():
            print(json.dumps(planner.effective_config(args.date).to_dict()))
            return 0
        new_cfg, outside = planner.preview_day_config(args.date, patch)
        stranded = {args.date: outside} if outside else {}
    else:
        patch = GlobalConfigPatch(**patch_fields)
        if patch.is_empty():
            print(json.dumps(planner.resolver.global_config.to_dict()))
            return 0
        new_cfg, stranded = planner.preview_global_config(patch)

    if stranded and not args.force:
        print(f"These tasks fall outside {new_cfg.start_time}-{new_cfg.end_time}:")
        for key, tasks in stranded.items():
            for t in tasks:
                print(f"  {key}  {_fmt_task(t)}")
        print("Re-run with --force to apply anyway.")
        return EXIT_CONFLICT

    if args.date:
        cfg = planner.resolver.set_day_config(args.date, patch)
    else:
        cfg = planner.resolver.set_global_config(patch)
    print(json.dumps(cfg.to_dict()))
    return 0


def cmd_export(planner: Planner, args) -> int:
    path = export_to_file(planner, args.path)
    print(f"Exported to {path}")
    return 0


def cmd_import(planner: Planner, args) -> int:
    n = import_from_file(planner, args.path)
    print(f"Imported {n} day(s).")
    return 0


def cmd_share(planner: Planner, args) -> int:
    client = ShareClient(args.api or get_settings().SHARE_API_URL)
    try:
        link = client.share_day(planner, args.date)
    except ShareError as e:
        print(f"Share failed: {e}", file=sys.stderr)
        return EXIT_ERROR
    print(link.url)
    return 0


# ---------- parser ----------
def build_parser() -> argparse.ArgumentParser:
    today = format_date_key(dt.date.today())
    colors = [c.value for c in Color]

    ap = argparse.ArgumentParser(prog="dayplanner", description="Daily schedule planner")
    ap.add_argument("--db", type=str, default=None, help="SQLAlchemy URL; default=DATABASE_URL")
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("show", help="Print the day's time grid")
    p.add_argument("date", nargs="?", default=today)
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("add", help="Add a task")
    p.add_argument("date")
    p.add_argument("name")
    p.add_argument("start", help="HH:MM")
    g = p.add_mutually_exclusive_group(required=True)
    g.add_argument("--duration", type=int, help="minutes")
    g.add_argument("--end", type=str, help="HH:MM")
    p.add_argument("--desc", type=str, default="")
    p.add_argument("--color", choices=colors, default=Color.BLUE.value)
    p.add_argument("--override", action="store_true", help="Replace conflicting tasks")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("edit", help="Edit a task")
    p.add_argument("date")
    p.add_argument("task_id")
    p.add_argument("--name")
    p.add_argument("--start")
    g = p.add_mutually_exclusive_group()
    g.add_argument("--duration", type=int)
    g.add_argument("--end")
    p.add_argument("--desc")
    p.add_argument("--color", choices=colors)
    p.add_argument("--override", action="store_true")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("remove", help="Remove a task")
    p.add_argument("date")
    p.add_argument("task_id")
    p.set_defaults(func=cmd_remove)

    p = sub.add_parser("clear", help="Remove every task on a day")
    p.add_argument("date")
    p.set_defaults(func=cmd_clear)

    p = sub.add_parser("breaks", help="Fill idle gaps with breaks")
    p.add_argument("date")
    p.set_defaults(func=cmd_breaks)

    p = sub.add_parser("config", help="Show or change global / per-day config")
    p.add_argument("--date", type=str, default=None)
    p.add_argument("--start")
    p.add_argument("--end")
    p.add_argument("--interval", type=int)
    p.add_argument("--reset", action="store_true", help="Drop the day override")
    p.add_argument("--force", action="store_true")
    p.set_defaults(func=cmd_config)

    p = sub.add_parser("export", help="Write the planner to a JSON file")
    p.add_argument("path")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Replace the planner with a JSON export")
    p.add_argument("path")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("share", help="Publish a day as a read-only link")
    p.add_argument("date")
    p.add_argument("--api", type=str, default=None)
    p.set_defaults(func=cmd_share)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    level = logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level)

    engine = create_planner_engine(args.db) if args.db else None
    planner = Planner.load(PlannerRepository(engine))
    try:
        return args.func(planner, args)
    except PlannerError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        _warn(planner)


if __name__ == "__main__":
    raise SystemExit(main())
