"""Console front end for the Wrangle planner."""
from __future__ import annotations

import argparse
import sys
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from core.priorities import Priority, normalize_priority
from core.settings import REMINDERS, UI
from services.agenda import day_agenda, week_agenda
from services.bootstrap import AppServices, build_services
from services.coordinator import InvalidItemError, ItemDraft, ItemNotFoundError
from utils.datetime_utils import format_time_range


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def _parse_time(value: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected HH:MM, got {value!r}") from exc
    return parsed.hour, parsed.minute


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wrangle", description=__doc__ or "")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="create a planner item")
    add.add_argument("title")
    add.add_argument("--date", type=_parse_date, default=None, help="day (default: today)")
    add.add_argument("--start", type=_parse_time, default=None, help="HH:MM (default: next full hour)")
    add.add_argument("--minutes", type=int, default=60, help="duration (default: %(default)s)")
    add.add_argument("--notes", default="")
    add.add_argument("--priority", choices=[p.name.lower() for p in Priority], default="medium")
    add.add_argument("--remind", type=int, default=REMINDERS.default_minutes_before,
                     help="minutes before start (default: %(default)s)")
    add.add_argument("--no-reminder", action="store_true")
    add.add_argument("--sync", action="store_true", help="mirror to the external calendar")

    lst = sub.add_parser("list", help="show a day or a week")
    lst.add_argument("--date", type=_parse_date, default=None)
    lst.add_argument("--week", action="store_true")

    done = sub.add_parser("done", help="toggle completion")
    done.add_argument("item_id")

    delete = sub.add_parser("delete", help="delete an item and its event/reminder")
    delete.add_argument("item_id")

    sub.add_parser("reminders", help="list pending reminders")
    sub.add_parser("blocks", help="list time blocks")
    return parser


def _item_line(item) -> str:
    mark = "x" if item.is_completed else " "
    synced = " [cal]" if item.calendar_event_id else ""
    return f"[{mark}] {item.id[:8]}  {format_time_range(item.start_time, item.end_time)}  {item.title}" \
           f" ({item.priority.label}){synced}"


def _cmd_add(services: AppServices, args) -> int:
    day = args.date or date.today()
    if args.start:
        start = datetime.combine(day, datetime.min.time()).replace(hour=args.start[0], minute=args.start[1])
    else:
        now = datetime.now()
        start = datetime.combine(day, datetime.min.time()).replace(
            hour=min(23, max(now.hour + 1, UI.editor.default_start_hour))
        )
    draft = ItemDraft(
        title=args.title,
        notes=args.notes,
        start_time=start,
        end_time=start + timedelta(minutes=args.minutes),
        priority=normalize_priority(args.priority),
        reminder_minutes_before=None if args.no_reminder else args.remind,
    )
    item = services.coordinator.create_item(draft, sync_to_calendar=args.sync)
    print(_item_line(services.items.get(item.id) or item))
    return 0


def _cmd_list(services: AppServices, args) -> int:
    day = args.date or date.today()
    agendas = week_agenda(services.items, day).days if args.week else [day_agenda(services.items, day)]
    for agenda in agendas:
        print(f"{agenda.day:%a %d %b}: {agenda.count_label}, {agenda.completed} done")
        for item in agenda.items:
            print("  " + _item_line(item))
    return 0


def _resolve_id(services: AppServices, prefix: str) -> Optional[str]:
    if services.items.get(prefix):
        return prefix
    matches = [item.id for item in services.items.list_all() if item.id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


def _cmd_done(services: AppServices, args) -> int:
    item_id = _resolve_id(services, args.item_id)
    if not item_id:
        print(f"No unique item matches {args.item_id}", file=sys.stderr)
        return 1
    item = services.coordinator.toggle_completed(item_id)
    print(_item_line(item))
    return 0


def _cmd_delete(services: AppServices, args) -> int:
    item_id = _resolve_id(services, args.item_id)
    if not item_id or not services.coordinator.delete_item(item_id):
        print(f"No unique item matches {args.item_id}", file=sys.stderr)
        return 1
    print(f"Deleted {item_id}")
    return 0


def _cmd_reminders(services: AppServices, args) -> int:
    pending = services.reminders.get_pending_notifications()
    if not pending:
        print("No pending reminders.")
    for note in pending:
        print(f"{note.fire_at:%Y-%m-%d %H:%M}  {note.title} - {note.body}")
    return 0


def _cmd_blocks(services: AppServices, args) -> int:
    for block in services.blocks.list_all():
        state = "" if block.is_active else " (inactive)"
        print(f"{block.time_range:>13}  {block.name} [{block.color}]{state}")
    return 0


COMMANDS = {
    "add": _cmd_add,
    "list": _cmd_list,
    "done": _cmd_done,
    "delete": _cmd_delete,
    "reminders": _cmd_reminders,
    "blocks": _cmd_blocks,
}


def main(argv: Optional[Sequence[str]] = None, services: Optional[AppServices] = None) -> int:
    args = build_parser().parse_args(argv)
    own_services = services is None
    services = services or build_services(background=False)
    try:
        return COMMANDS[args.command](services, args)
    except (InvalidItemError, ItemNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    finally:
        if own_services:
            services.shutdown()


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
