"""
Time interval arithmetic.

Times are wall-clock 'H:MM' / 'HH:MM' strings, converted to minutes since
midnight for every comparison.

Overlap rule (half-open intervals, touching endpoints do NOT overlap):
    start < other_end AND end > other_start

Merging is deliberately looser: touching intervals are coalesced, so a room
booked 08:00-10:00 and 10:00-12:00 is one busy block 08:00-12:00.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable, List, Tuple

from cruschedule.errors import InvalidTimeFormat

if TYPE_CHECKING:
    from cruschedule.model import Session


Interval = Tuple[int, int]

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def to_minutes(hhmm: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises InvalidTimeFormat for invalid formats or out of range values.
    """
    m = _TIME_RE.match(str(hhmm).strip())
    if not m:
        raise InvalidTimeFormat(f"Invalid time format, expected HH:MM: {hhmm!r}")
    h = int(m.group(1))
    mins = int(m.group(2))
    if not (0 <= h <= 23 and 0 <= mins <= 59):
        raise InvalidTimeFormat(f"Invalid time value: {hhmm!r}")
    return h * 60 + mins


def format_minutes(minutes: int) -> str:
    """Inverse of to_minutes, always zero-padded ('08:00')."""
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def overlaps(a: Session, b: Session) -> bool:
    """
    Same day AND same room AND time intervals overlap.
    Symmetric; a zero-length session never overlaps anything, not even itself.
    """
    if a.day != b.day or a.room != b.room:
        return False
    return intervals_overlap(a.start_minutes, a.end_minutes, b.start_minutes, b.end_minutes)


def overlaps_at(session: Session, day: str, start: int, end: int, room: str) -> bool:
    """
    Does `session` overlap the interval [start, end) of `room` on `day`?

    Used by availability queries instead of building a throwaway session.
    """
    if session.day != day or session.room != room:
        return False
    return intervals_overlap(session.start_minutes, session.end_minutes, start, end)


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Sort by start and fold overlapping or touching intervals.

    The result is sorted and non-overlapping and covers exactly the same
    minutes as the input. The input is not modified. Empty intervals
    (end <= start) cover nothing and are dropped.
    """
    ordered = sorted((iv for iv in intervals if iv[1] > iv[0]), key=lambda iv: iv[0])
    if not ordered:
        return []

    merged: List[Interval] = [ordered[0]]
    for start, end in ordered[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged
