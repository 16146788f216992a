from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import requests
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cruschedule import queries
from cruschedule.collection import SessionSet
from cruschedule.conflicts import find_conflicts
from cruschedule.errors import ScheduleError, SourceUnavailableError
from cruschedule.export_csv import export_sessions_to_csv
from cruschedule.export_ics import export_sessions_to_ics
from cruschedule.fetch import fetch_cru
from cruschedule.model import TimeRange
from cruschedule.storage import load_sessions, resolve_data_dir
from cruschedule.util import parse_date

console = Console()

MENU = (
    "\n[1] Rooms for a course\n"
    "[2] Room capacity\n"
    "[3] Free periods of a room\n"
    "[4] Available rooms for a period\n"
    "[5] Show conflicts\n"
    "[6] Occupancy statistics\n"
    "[7] Rank rooms by capacity\n"
    "[8] Common free periods of courses\n"
    "[9] Backup room\n"
    "[10] Export CSV\n"
    "[11] Export .ics\n"
    "[12] Fetch a CRU export\n"
    "[0] Exit\n"
    "Select: "
)


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(msg)


def _load(data_dir: Optional[Path], load_fn: Callable[[Optional[Path]], SessionSet]) -> SessionSet:
    try:
        return load_fn(data_dir)
    except SourceUnavailableError as exc:
        _println(f"[yellow]{escape(str(exc))}[/]")
        return SessionSet.empty()


def run_interactive(
    data_dir: Optional[Path] = None,
    load_fn: Callable[[Optional[Path]], SessionSet] = load_sessions,
) -> None:
    """
    Interactive menu loop. The data is loaded once and reloaded only after
    a fetch, so every query of the session sees the same snapshot.
    """
    sessions = _load(data_dir, load_fn)

    flows: dict[str, Callable[[SessionSet], None]] = {
        "1": _flow_search_rooms,
        "2": _flow_room_capacity,
        "3": _flow_free_slots,
        "4": _flow_available_rooms,
        "5": _flow_conflicts,
        "6": _flow_usage_stats,
        "7": _flow_rank_rooms,
        "8": _flow_common_slots,
        "9": _flow_backup_room,
        "10": _flow_export_csv,
        "11": _flow_export_ics,
    }

    while True:
        _print_header(sessions, data_dir)
        choice = _prompt(MENU).strip()

        if choice == "0":
            _println("Bye.")
            return

        if choice == "12":
            if _flow_fetch(data_dir):
                sessions = _load(data_dir, load_fn)
                _println("Data reloaded into interactive session.")
            continue

        flow = flows.get(choice)
        if flow is None:
            _println("Invalid choice.")
            continue

        try:
            flow(sessions)
        except ScheduleError as exc:
            _println(f"[red]{escape(str(exc))}[/]")


def _print_header(sessions: SessionSet, data_dir: Optional[Path]) -> None:
    _println("\n=== cruschedule (interactive) ===")
    _println(
        f"Data: {resolve_data_dir(data_dir)} | sessions={len(sessions)} | "
        f"courses={len(queries.list_course_codes(sessions))} | rooms={len(queries.list_rooms(sessions))}"
    )


def _ranges_text(ranges: list[TimeRange]) -> str:
    return ", ".join(str(r) for r in ranges) if ranges else "[yellow]none[/]"


def _flow_search_rooms(sessions: SessionSet) -> None:
    course = _prompt("Course code (e.g. ME01): ").strip()
    if not course:
        return

    table = Table(title=f"Rooms for {course.upper()}", box=box.SIMPLE)
    table.add_column("Room")
    table.add_column("Capacity", justify="right")
    for rc in queries.search_rooms_by_course(sessions, course):
        table.add_row(f"[bold cyan]{rc.room}[/]", str(rc.capacity))
    console.print(table)


def _flow_room_capacity(sessions: SessionSet) -> None:
    room = _prompt("Room code: ").strip()
    if not room:
        return
    cap = queries.get_room_capacity(sessions, room)
    _println(f"Room [bold cyan]{room.upper()}[/] has [green]{cap}[/] places")


def _flow_free_slots(sessions: SessionSet) -> None:
    room = _prompt("Room code: ").strip()
    if not room:
        return

    table = Table(title=f"Free periods of {room.upper()}", box=box.SIMPLE)
    table.add_column("Day")
    table.add_column("Free")
    for day, ranges in queries.get_free_slots_for_room(sessions, room).items():
        table.add_row(day, _ranges_text(ranges))
    console.print(table)


def _flow_available_rooms(sessions: SessionSet) -> None:
    day = _prompt("Day (L, MA, ME, J, V): ").strip()
    start = _prompt("Start (HH:MM): ").strip()
    end = _prompt("End (HH:MM): ").strip()

    rooms = queries.get_available_rooms(sessions, start, end, day)
    if not rooms:
        _println("[yellow]No room available for this period.[/]")
        return
    _println(f"Available rooms ({len(rooms)}): " + ", ".join(rooms))


def _flow_conflicts(sessions: SessionSet) -> None:
    confs = find_conflicts(sessions)
    if not confs:
        _println("[green]No conflicts found.[/]")
        return

    table = Table(title=f"Conflicts ({len(confs)})", box=box.SIMPLE)
    table.add_column("Room")
    table.add_column("Day")
    table.add_column("Session A")
    table.add_column("Session B")
    for c in confs:
        a, b = c.first, c.second
        table.add_row(
            f"[bold cyan]{c.room}[/]",
            c.day,
            f"{a.start_time}-{a.end_time} {a.course_code} {a.lesson_type}",
            f"{b.start_time}-{b.end_time} {b.course_code} {b.lesson_type}",
        )
    console.print(table)


def _flow_usage_stats(sessions: SessionSet) -> None:
    stats = queries.get_room_usage_stats(sessions)

    table = Table(title="Room occupancy", box=box.SIMPLE)
    table.add_column("Room")
    table.add_column("Used", justify="right")
    for room, rate in stats.per_room.items():
        table.add_row(room, f"{rate:.2f}%")
    console.print(table)
    _println(f"Average occupancy: [cyan]{stats.average:.2f}%[/]")


def _flow_rank_rooms(sessions: SessionSet) -> None:
    table = Table(title="Rooms by capacity", box=box.SIMPLE)
    table.add_column("Capacity", justify="right")
    table.add_column("Rooms", justify="right")
    for bucket in queries.rank_rooms_by_capacity(sessions):
        table.add_row(str(bucket.capacity), str(bucket.rooms_count))
    console.print(table)


def _flow_common_slots(sessions: SessionSet) -> None:
    raw = _prompt("Course codes, comma separated (blank = none): ").strip()
    courses = [c.strip() for c in raw.split(",") if c.strip()]

    table = Table(title="Common free periods", box=box.SIMPLE)
    table.add_column("Day")
    table.add_column("Free")
    for day, ranges in queries.find_common_free_slots(sessions, courses).items():
        table.add_row(day, _ranges_text(ranges))
    console.print(table)


def _flow_backup_room(sessions: SessionSet) -> None:
    room = _prompt("Unusable room code: ").strip()
    if not room:
        return

    candidates = queries.find_backup_rooms(sessions, room)
    if not candidates:
        _println(f"[yellow]No backup room found for {room.upper()}.[/]")
        return

    table = Table(
        title=f"Backup rooms for {room.upper()} ({queries.BACKUP_DAY} {queries.BACKUP_START}-{queries.BACKUP_END})",
        box=box.SIMPLE,
    )
    table.add_column("Room")
    table.add_column("Capacity", justify="right")
    for rc in candidates:
        table.add_row(f"[bold cyan]{rc.room}[/]", str(rc.capacity))
    console.print(table)


def _flow_export_csv(sessions: SessionSet) -> None:
    default_name = "cruschedule.csv"
    out_in = _prompt(f"File name ({default_name}): ").strip()
    out_path = Path(out_in or default_name)
    if out_path.suffix.lower() != ".csv":
        out_path = out_path.with_suffix(".csv")

    n = export_sessions_to_csv(sessions, out_path)
    _println(f"Exported {n} sessions to: {out_path.resolve()}")


def _flow_export_ics(sessions: SessionSet) -> None:
    start = parse_date(_prompt("Start date (YYYY-MM-DD): ").strip(), "start")
    end_in = _prompt("End date (YYYY-MM-DD) (blank = none): ").strip()
    end = parse_date(end_in, "end") if end_in else None
    raw = _prompt("Course codes, comma separated (blank = all): ").strip()
    courses = [c.strip() for c in raw.split(",") if c.strip()] or None

    default_name = "agenda.ics"
    out_in = _prompt(f"File name ({default_name}): ").strip()
    out_path = Path(out_in or default_name)
    if out_path.suffix.lower() != ".ics":
        out_path = out_path.with_suffix(".ics")

    n = export_sessions_to_ics(sessions, out_path, week_start=start, courses=courses, period_end=end)
    _println(f"Exported {n} events to: {out_path.resolve()}")


def _flow_fetch(data_dir: Optional[Path]) -> bool:
    url = _prompt("URL of the CRU export (blank = back): ").strip()
    if not url:
        return False
    unit = _prompt("Unit name (sub-directory): ").strip()
    refresh = _prompt("Overwrite existing file? (y/N): ").strip().lower() == "y"

    try:
        with console.status("Fetching..."):
            path = fetch_cru(url, unit, data_dir=data_dir, refresh=refresh)
    except (requests.RequestException, ValueError) as exc:
        _println(f"[red]Fetch failed: {escape(str(exc))}[/]")
        return False

    _println(f"Saved: {path}")
    return True
