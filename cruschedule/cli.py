"""
CLI (Command Line Interface).

This module provides quick terminal commands over the loaded CRU data, e.g.:

    cruschedule search-rooms ME01
    cruschedule room-capacity S104
    cruschedule free-slots S104
    cruschedule available-rooms 10:00 12:00 MA
    cruschedule conflicts
    cruschedule usage-stats
    cruschedule rank-rooms
    cruschedule common-slots ME01 MC01
    cruschedule backup-room S104
    cruschedule export-csv out.csv
    cruschedule export-ics --start 2026-02-02 -o agenda.ics
    cruschedule fetch <url> <unit>
    cruschedule interactive

Note:
- The interactive UI lives in cruschedule/interactive.py
- This CLI is intentionally simple and prints plain text (no rich formatting)
- Data is loaded once per invocation from --data-dir (default: package data/)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import requests

from cruschedule import queries
from cruschedule.collection import SessionSet
from cruschedule.conflicts import find_conflicts
from cruschedule.errors import ScheduleError
from cruschedule.export_csv import export_sessions_to_csv
from cruschedule.export_ics import DEFAULT_UID_DOMAIN, export_sessions_to_ics
from cruschedule.storage import load_sessions
from cruschedule.util import configure_logging, parse_date

logger = logging.getLogger(__name__)


def _cmd_search_rooms(args: argparse.Namespace, sessions: SessionSet) -> int:
    """
    Rooms used by a course, with their capacity.
    """
    rooms = queries.search_rooms_by_course(sessions, args.course)
    print(f'Rooms for course "{args.course}":')
    for rc in rooms:
        print(f"{rc.room} - {rc.capacity} places")
    return 0


def _cmd_room_capacity(args: argparse.Namespace, sessions: SessionSet) -> int:
    cap = queries.get_room_capacity(sessions, args.room)
    print(f"Room {args.room.upper()} has a capacity of {cap} places")
    return 0


def _cmd_free_slots(args: argparse.Namespace, sessions: SessionSet) -> int:
    """
    Free periods of one room for every weekday.
    """
    free_by_day = queries.get_free_slots_for_room(sessions, args.room)
    for day, ranges in free_by_day.items():
        if not ranges:
            print(f"{day} : no free period")
        else:
            print(f"{day} : {', '.join(str(r) for r in ranges)}")
    return 0


def _cmd_available_rooms(args: argparse.Namespace, sessions: SessionSet) -> int:
    rooms = queries.get_available_rooms(sessions, args.start, args.end, args.day)
    if not rooms:
        print("No room available for this period.")
        return 0

    print(f"Rooms available from {args.start} to {args.end} on {args.day.upper()}:")
    for room in rooms:
        print(f"Room {room}")
    return 0


def _cmd_conflicts(args: argparse.Namespace, sessions: SessionSet) -> int:
    """
    Print all double bookings. Exit code 0 either way.
    """
    confs = find_conflicts(sessions)
    if not confs:
        print("Data is valid, no conflict detected.")
        return 0

    print(f"Conflicts found: {len(confs)}")
    for c in confs:
        a, b = c.first, c.second
        print(
            f"- Room {c.room}, {c.day} {a.start_time}-{a.end_time} {a.course_code} {a.lesson_type}"
            f"  <->  {b.start_time}-{b.end_time} {b.course_code} {b.lesson_type}"
        )
    return 0


def _cmd_usage_stats(args: argparse.Namespace, sessions: SessionSet) -> int:
    stats = queries.get_room_usage_stats(sessions)
    print("Room occupancy (share of the 60 weekly opening hours):")
    for room, rate in stats.per_room.items():
        print(f"{room}: {rate:.2f}% used")
    print(f"Average occupancy: {stats.average:.2f}%")
    return 0


def _cmd_rank_rooms(args: argparse.Namespace, sessions: SessionSet) -> int:
    for bucket in queries.rank_rooms_by_capacity(sessions):
        print(f"{bucket.capacity} places: {bucket.rooms_count} room(s)")
    return 0


def _cmd_common_slots(args: argparse.Namespace, sessions: SessionSet) -> int:
    """
    Periods where none of the given courses has a session.
    """
    free_by_day = queries.find_common_free_slots(sessions, args.courses)
    for day, ranges in free_by_day.items():
        text = ", ".join(str(r) for r in ranges) if ranges else "no common free period"
        print(f"{day}: {text}")
    return 0


def _cmd_backup_room(args: argparse.Namespace, sessions: SessionSet) -> int:
    candidates = queries.find_backup_rooms(sessions, args.room, day=args.day, start=args.start, end=args.end)
    if not candidates:
        print(f"No backup room found for {args.room.upper()}.")
        return 0

    print(f"Backup rooms for {args.room.upper()} ({args.day.upper()} {args.start}-{args.end}):")
    for rc in candidates:
        print(f"{rc.room} - {rc.capacity} places")
    return 0


def _cmd_courses(args: argparse.Namespace, sessions: SessionSet) -> int:
    for code in queries.list_course_codes(sessions):
        print(code)
    return 0


def _cmd_rooms(args: argparse.Namespace, sessions: SessionSet) -> int:
    for room in queries.list_rooms(sessions):
        print(room)
    return 0


def _cmd_export_csv(args: argparse.Namespace, sessions: SessionSet) -> int:
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .csv path.")
        return 1

    n = export_sessions_to_csv(sessions, out_path)
    print(f"Exported {n} sessions to: {out_path}")
    return 0


def _cmd_export_ics(args: argparse.Namespace, sessions: SessionSet) -> int:
    """
    Export sessions (optionally only some courses) into an iCalendar file.
    """
    start = parse_date(args.start, "start")
    end = parse_date(args.end, "end") if args.end else None

    courses = None
    if args.courses:
        courses = [c.strip() for c in args.courses.split(",") if c.strip()]

    n = export_sessions_to_ics(
        sessions,
        args.output,
        week_start=start,
        courses=courses,
        period_end=end,
        uid_domain=args.uid_domain,
    )
    if n == 0:
        print("No session matches the requested courses and period.")
    print(f"Exported {n} events to: {args.output}")
    return 0


def _cmd_fetch(args: argparse.Namespace) -> int:
    from cruschedule.fetch import fetch_cru

    try:
        path = fetch_cru(args.url, args.unit, data_dir=args.data_dir, refresh=args.refresh)
    except (requests.RequestException, ValueError) as exc:
        print(f"Fetch failed: {exc}", file=sys.stderr)
        return 1
    print(f"Saved: {path}")
    return 0


COMMANDS = {
    "search-rooms": _cmd_search_rooms,
    "room-capacity": _cmd_room_capacity,
    "free-slots": _cmd_free_slots,
    "available-rooms": _cmd_available_rooms,
    "conflicts": _cmd_conflicts,
    "usage-stats": _cmd_usage_stats,
    "rank-rooms": _cmd_rank_rooms,
    "common-slots": _cmd_common_slots,
    "backup-room": _cmd_backup_room,
    "courses": _cmd_courses,
    "rooms": _cmd_rooms,
    "export-csv": _cmd_export_csv,
    "export-ics": _cmd_export_ics,
}


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="cruschedule", description="Room occupancy tool for CRU timetables")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory with one <unit>/edt.cru per unit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search-rooms", help="Rooms used by a course")
    p.add_argument("course", type=str, help="Course code (e.g. ME01)")

    p = sub.add_parser("room-capacity", help="Capacity of a room")
    p.add_argument("room", type=str, help="Room code (e.g. S104)")

    p = sub.add_parser("free-slots", help="Free periods of a room")
    p.add_argument("room", type=str, help="Room code (e.g. S104)")

    p = sub.add_parser("available-rooms", help="Rooms free during a period")
    p.add_argument("start", type=str, help="Start time (HH:MM)")
    p.add_argument("end", type=str, help="End time (HH:MM)")
    p.add_argument("day", type=str, help="Weekday (L, MA, ME, J, V)")

    sub.add_parser("conflicts", help="Detect double-booked rooms")
    sub.add_parser("usage-stats", help="Room occupancy statistics")
    sub.add_parser("rank-rooms", help="Rank rooms by capacity")

    p = sub.add_parser("common-slots", help="Free periods shared by several courses")
    p.add_argument("courses", nargs="*", help="Course codes")

    p = sub.add_parser("backup-room", help="Find a replacement for an unusable room")
    p.add_argument("room", type=str, help="Unusable room code")
    p.add_argument("--day", default=queries.BACKUP_DAY, help="Weekday of the reference period")
    p.add_argument("--start", default=queries.BACKUP_START, help="Start of the reference period")
    p.add_argument("--end", default=queries.BACKUP_END, help="End of the reference period")

    sub.add_parser("courses", help="List course codes")
    sub.add_parser("rooms", help="List rooms")

    p = sub.add_parser("export-csv", help="Export all sessions to CSV")
    p.add_argument("out", type=str, help="Output file path (e.g. out.csv)")

    p = sub.add_parser("export-ics", help="Export sessions to .ics")
    p.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    p.add_argument("--end", default=None, help="End date (YYYY-MM-DD)")
    p.add_argument("-c", "--courses", default=None, help="Comma separated course codes (e.g. ME01,MC01)")
    p.add_argument("-o", "--output", default="agenda.ics", help="Output .ics path")
    p.add_argument("--uid-domain", default=DEFAULT_UID_DOMAIN, help="Domain used in event UIDs")

    p = sub.add_parser("fetch", help="Download a CRU export into the data directory")
    p.add_argument("url", type=str, help="URL of the CRU export")
    p.add_argument("unit", type=str, help="Unit name (sub-directory)")
    p.add_argument("--refresh", action="store_true", help="Overwrite an existing edt.cru")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, loads the data once, dispatches to the
    command handler and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.command == "fetch":
            raise SystemExit(_cmd_fetch(args))

        if args.command == "interactive":
            from cruschedule.interactive import run_interactive

            run_interactive(args.data_dir)
            raise SystemExit(0)

        handler = COMMANDS.get(args.command)
        if handler is None:
            raise SystemExit(2)

        sessions = load_sessions(args.data_dir)
        raise SystemExit(handler(args, sessions))
    except ScheduleError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1)
