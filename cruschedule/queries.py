"""
Room and timetable queries.

Every query is a plain function over an already-loaded SessionSet (see
cruschedule.storage) and never modifies it. Results are the small records
from cruschedule.model; formatting is left to the CLI / interactive UI.

Room and course codes are matched case-insensitively.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Tuple

from cruschedule.collection import SessionSet
from cruschedule.errors import InvalidInputError, NotFoundError
from cruschedule.intervals import (
    format_minutes,
    intervals_overlap,
    merge_intervals,
    overlaps_at,
    to_minutes,
)
from cruschedule.model import (
    DAY_CODES,
    CapacityBucket,
    RoomCapacity,
    Session,
    TimeRange,
    UsageStats,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Site constants
# ---------------------------------------------------------------------------

# Rooms are open 08:00-20:00, Monday to Friday
OPEN_MINUTES = 8 * 60
CLOSE_MINUTES = 20 * 60
TOTAL_AVAILABLE_HOURS = 60  # 12h x 5 days

# Common free slots are searched on a half-hour grid
GRID_STEP_MINUTES = 30

# Reference interval used to look for a backup room
BACKUP_DAY = "L"
BACKUP_START = "10:00"
BACKUP_END = "12:00"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _norm(code: str) -> str:
    return str(code or "").strip().upper()


def validate_day(day: str) -> str:
    """Return the normalized day code or raise InvalidInputError."""
    d = _norm(day)
    if d not in DAY_CODES:
        raise InvalidInputError(f"Invalid day {day!r}. Use one of: {', '.join(DAY_CODES)}.")
    return d


def validate_interval(start: str, end: str) -> Tuple[int, int]:
    """Convert start/end to minutes; the interval must not be empty."""
    start_min = to_minutes(start)
    end_min = to_minutes(end)
    if end_min <= start_min:
        raise InvalidInputError(f"End time {end} must be after start time {start}.")
    return start_min, end_min


def _sessions_in_room(sessions: SessionSet, room: str) -> SessionSet:
    key = _norm(room)
    return sessions.filter(lambda s: _norm(s.room) == key)


def room_capacities(sessions: Iterable[Session]) -> Dict[str, int]:
    """Room -> highest capacity seen for that room."""
    caps: Dict[str, int] = {}
    for s in sessions:
        caps[s.room] = max(caps.get(s.room, 0), s.capacity)
    return caps


def list_course_codes(sessions: Iterable[Session]) -> List[str]:
    return sorted({s.course_code for s in sessions})


def list_rooms(sessions: Iterable[Session]) -> List[str]:
    return sorted({s.room for s in sessions if s.room})


def _ranges(intervals: Iterable[Tuple[int, int]]) -> List[TimeRange]:
    return [TimeRange(format_minutes(a), format_minutes(b)) for a, b in intervals]


# ---------------------------------------------------------------------------
# Rooms and capacities
# ---------------------------------------------------------------------------


def search_rooms_by_course(sessions: SessionSet, course_code: str) -> List[RoomCapacity]:
    """
    Rooms used by a course, each with the highest capacity seen there.
    Raises NotFoundError for an unknown course.
    """
    key = _norm(course_code)
    matching = sessions.filter(lambda s: _norm(s.course_code) == key)
    if not matching:
        raise NotFoundError(f"Unknown course: {course_code}")

    caps = room_capacities(matching)
    return [RoomCapacity(room=room, capacity=caps[room]) for room in sorted(caps)]


def get_room_capacity(sessions: SessionSet, room: str) -> int:
    in_room = _sessions_in_room(sessions, room)
    if not in_room:
        raise NotFoundError(f'Room "{room}" not found in the timetable data.')
    return max(s.capacity for s in in_room)


def rank_rooms_by_capacity(sessions: SessionSet) -> List[CapacityBucket]:
    """
    Distinct rooms grouped by their capacity (highest seen per room),
    largest capacity first.
    """
    counts = Counter(room_capacities(sessions).values())
    return [
        CapacityBucket(capacity=cap, rooms_count=counts[cap])
        for cap in sorted(counts, reverse=True)
    ]


# ---------------------------------------------------------------------------
# Free time
# ---------------------------------------------------------------------------


def get_free_slots_for_room(sessions: SessionSet, room: str) -> Dict[str, List[TimeRange]]:
    """
    Free periods of a room for each weekday, within opening hours.

    Busy intervals are clipped to 08:00-20:00 and merged (touching ones
    included), then the gaps between them are reported.
    """
    in_room = _sessions_in_room(sessions, room)
    if not in_room:
        raise NotFoundError(f"Unknown room: {room}")

    busy_by_day: Dict[str, List[Tuple[int, int]]] = {day: [] for day in DAY_CODES}
    for s in in_room:
        if s.day not in busy_by_day:
            continue
        start = max(s.start_minutes, OPEN_MINUTES)
        end = min(s.end_minutes, CLOSE_MINUTES)
        if start < end:
            busy_by_day[s.day].append((start, end))

    result: Dict[str, List[TimeRange]] = {}
    for day in DAY_CODES:
        free: List[Tuple[int, int]] = []
        current = OPEN_MINUTES
        for start, end in merge_intervals(busy_by_day[day]):
            if start > current:
                free.append((current, start))
            current = max(current, end)
        if current < CLOSE_MINUTES:
            free.append((current, CLOSE_MINUTES))
        result[day] = _ranges(free)

    return result


def get_available_rooms(sessions: SessionSet, start: str, end: str, day: str) -> List[str]:
    """
    Rooms with no session overlapping [start, end) on `day`.

    Every room seen anywhere in the data is a candidate, so a room that
    has no session at all on that day is available.
    """
    day = validate_day(day)
    start_min, end_min = validate_interval(start, end)

    by_room: Dict[str, List[Session]] = defaultdict(list)
    for s in sessions:
        by_room[s.room].append(s)

    available = [
        room
        for room, booked in by_room.items()
        if not any(overlaps_at(s, day, start_min, end_min, room) for s in booked)
    ]
    return sorted(available)


def find_common_free_slots(sessions: SessionSet, course_codes: Iterable[str]) -> Dict[str, List[TimeRange]]:
    """
    Periods where none of the given courses has a session, per weekday.

    Opening hours are cut into half-hour cells; a cell is busy as soon as
    one session of the courses overlaps it. Maximal runs of free cells are
    reported. With no course at all the whole 08:00-20:00 window is free.
    """
    codes = {_norm(c) for c in course_codes if _norm(c)}

    known = {_norm(s.course_code) for s in sessions}
    unknown = sorted(codes - known)
    if unknown:
        raise NotFoundError(f"Unknown course(s): {', '.join(unknown)}")

    restricted = sessions.filter(lambda s: _norm(s.course_code) in codes)

    cells = (CLOSE_MINUTES - OPEN_MINUTES) // GRID_STEP_MINUTES
    result: Dict[str, List[TimeRange]] = {}

    for day in DAY_CODES:
        day_sessions = [s for s in restricted if s.day == day]

        busy = []
        for i in range(cells):
            cell_start = OPEN_MINUTES + i * GRID_STEP_MINUTES
            cell_end = cell_start + GRID_STEP_MINUTES
            busy.append(
                any(intervals_overlap(s.start_minutes, s.end_minutes, cell_start, cell_end) for s in day_sessions)
            )

        runs: List[Tuple[int, int]] = []
        run_start = None
        for i, is_busy in enumerate(busy + [True]):
            if not is_busy and run_start is None:
                run_start = i
            elif is_busy and run_start is not None:
                runs.append(
                    (OPEN_MINUTES + run_start * GRID_STEP_MINUTES, OPEN_MINUTES + i * GRID_STEP_MINUTES)
                )
                run_start = None

        result[day] = _ranges(runs)

    return result


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def get_room_usage_stats(sessions: SessionSet) -> UsageStats:
    """
    Weekly occupancy rate per room:
        booked hours / TOTAL_AVAILABLE_HOURS * 100
    The average is taken over rooms that have at least one session.
    """
    minutes_by_room: Dict[str, int] = defaultdict(int)
    for s in sessions:
        minutes_by_room[s.room] += s.duration_minutes

    per_room = {
        room: (minutes_by_room[room] / 60) / TOTAL_AVAILABLE_HOURS * 100
        for room in sorted(minutes_by_room)
    }
    average = sum(per_room.values()) / len(per_room) if per_room else 0.0
    return UsageStats(per_room=per_room, average=average)


# ---------------------------------------------------------------------------
# Backup room
# ---------------------------------------------------------------------------


def find_backup_rooms(
    sessions: SessionSet,
    broken_room: str,
    day: str = BACKUP_DAY,
    start: str = BACKUP_START,
    end: str = BACKUP_END,
) -> List[RoomCapacity]:
    """
    Replacement candidates for an unusable room.

    A candidate is free during the reference interval (Monday 10:00-12:00
    by default), is in the same building (first character of the room
    code) and seats at least as many people. Smallest rooms come first.
    """
    caps = room_capacities(sessions)
    key = _norm(broken_room)

    broken = [room for room in caps if _norm(room) == key]
    if not broken:
        raise NotFoundError(f"Unknown room: {broken_room}")
    needed = max(caps[room] for room in broken)
    building = key[:1]

    candidates = [
        RoomCapacity(room=room, capacity=caps[room])
        for room in get_available_rooms(sessions, start, end, day)
        if _norm(room) != key and _norm(room)[:1] == building and caps[room] >= needed
    ]
    candidates.sort(key=lambda rc: (rc.capacity, rc.room))

    logger.debug("Backup rooms for %s (building %s, >= %d places): %d", key, building, needed, len(candidates))
    return candidates
