"""
Central data model definitions used across the project.

This module defines the canonical Session value and the small result records
returned by the queries, so that:
- the parser, the queries and the exporters share the same field names
- query results are plain structured data (no formatting)
- the code stays readable and beginner-friendly
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from cruschedule.intervals import overlaps, to_minutes


# Weekdays in CRU notation, Monday to Friday
DAY_CODES: Tuple[str, ...] = ("L", "MA", "ME", "J", "V")
DAY_ORDER: Dict[str, int] = {day: i + 1 for i, day in enumerate(DAY_CODES)}

# Normalized lesson types (lecture / tutorial / lab)
LESSON_TYPES: Dict[str, str] = {"C": "CM", "D": "TD", "T": "TP"}


def map_lesson_type(raw: str) -> str:
    """
    Map a raw CRU lesson code (C1, D2, T1, ...) to CM / TD / TP.

    Only the first character decides the category. Unknown codes are
    passed through unchanged.
    """
    if not raw:
        return raw
    return LESSON_TYPES.get(raw[0].upper(), raw)


@dataclass(frozen=True)
class Session:
    """
    One weekly recurring class occurrence, i.e. one slot line of a CRU file.

    Frozen so that it can live in sets and dict keys: two sessions are
    equal iff all nine fields are equal.
    """

    course_code: str
    lesson_type: str
    capacity: int
    day: str
    start_time: str
    end_time: str
    room: str
    subgroup: str
    group_index: Optional[int] = None

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    @property
    def duration_minutes(self) -> int:
        # start >= end is kept as a session, but it never occupies anything
        return max(0, self.end_minutes - self.start_minutes)

    def sort_key(self) -> Tuple[int, int]:
        """(weekday rank, start minute). Unknown day codes sort first."""
        return (DAY_ORDER.get(self.day, 0), self.start_minutes)

    def overlaps(self, other: Session) -> bool:
        return overlaps(self, other)


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeRange:
    start: str
    end: str

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class RoomCapacity:
    room: str
    capacity: int


@dataclass(frozen=True)
class Conflict:
    """Two sessions booked in the same room at overlapping times."""

    room: str
    day: str
    first: Session
    second: Session


@dataclass(frozen=True)
class CapacityBucket:
    capacity: int
    rooms_count: int


@dataclass
class UsageStats:
    """
    Weekly occupancy per room, in percent of the opening hours.
    """

    per_room: Dict[str, float] = field(default_factory=dict)
    average: float = 0.0
