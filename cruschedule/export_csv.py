"""
CSV export of the loaded sessions (one header line, one row per session).
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable

from cruschedule.collection import SessionSet
from cruschedule.model import Session

CSV_HEADER = [
    "courseCode",
    "lessonType",
    "capacity",
    "day",
    "startTime",
    "endTime",
    "room",
    "subgroup",
]


def session_row(s: Session) -> list[str]:
    return [s.course_code, s.lesson_type, str(s.capacity), s.day, s.start_time, s.end_time, s.room, s.subgroup]


def sessions_to_csv(sessions: Iterable[Session]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for s in SessionSet(sessions).sort(tie_break=lambda s: (s.room, s.course_code)):
        writer.writerow(session_row(s))
    return buf.getvalue()


def export_sessions_to_csv(sessions: Iterable[Session], out_path: str | Path) -> int:
    """Write the CSV file and return the number of rows (header excluded)."""
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    unique = SessionSet(sessions)
    out.write_text(sessions_to_csv(unique), encoding="utf-8")
    return len(unique)
