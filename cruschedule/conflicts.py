"""
Conflict detection.

Given all loaded sessions, detect double bookings of the same room.
Overlap rule (same day AND same room):
    start < other_end AND end > other_start
"""

from __future__ import annotations

from typing import Iterable, List

from cruschedule.collection import SessionSet
from cruschedule.intervals import intervals_overlap
from cruschedule.model import Conflict, Session


def find_conflicts(sessions: Iterable[Session]) -> List[Conflict]:
    """
    Find overlapping session pairs (A,B), each pair appears once (i<j).

    Sessions are sorted by (day, start, room) first, so the result comes
    out in timetable order. All pairs are compared, not only neighbours:
    a long session can overlap several later ones.
    """
    ordered = SessionSet(sessions).sort(tie_break=lambda s: s.room).to_list()
    # minutes are parsed once per session, not once per compared pair
    spans = [(s.start_minutes, s.end_minutes) for s in ordered]

    conflicts: List[Conflict] = []

    # O(n^2) is fine for typical timetable sizes
    for i in range(len(ordered)):
        a = ordered[i]
        a_start, a_end = spans[i]
        for j in range(i + 1, len(ordered)):
            b = ordered[j]
            if a.day != b.day or a.room != b.room:
                continue
            if intervals_overlap(a_start, a_end, *spans[j]):
                conflicts.append(Conflict(room=a.room, day=a.day, first=a, second=b))

    return conflicts
