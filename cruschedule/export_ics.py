"""
iCalendar (.ics) export.

Sessions are weekly slots without a date. They are placed in a reference
week (the first Monday on or after the chosen start date) and converted
into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from cruschedule.collection import SessionSet
from cruschedule.errors import InvalidInputError
from cruschedule.model import DAY_CODES, Session
from cruschedule.util import next_monday

DEFAULT_UID_DOMAIN = "edt.example.fr"


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(dt: datetime) -> str:
    """
    Format a datetime as ICS local datetime string 'YYYYMMDDTHHMM00'.
    """
    return dt.strftime("%Y%m%dT%H%M00")


def _at(day: date, minutes: int) -> datetime:
    return datetime(day.year, day.month, day.day) + timedelta(minutes=minutes)


def build_calendar_events(
    sessions: Iterable[Session],
    week_start: date,
    courses: Optional[Iterable[str]] = None,
    period_end: Optional[date] = None,
    uid_domain: str = DEFAULT_UID_DOMAIN,
) -> list[dict[str, Any]]:
    """
    Map each session to one event of the reference week.

    - courses: allow-list of course codes (None = all courses)
    - period_end: events dated after it are skipped
    """
    if period_end is not None and period_end < week_start:
        raise InvalidInputError("The end date must not be before the start date.")

    allowed = {c.strip().upper() for c in courses if c.strip()} if courses is not None else None
    monday = next_monday(week_start)

    events: list[dict[str, Any]] = []
    ordered = SessionSet(sessions).sort(tie_break=lambda s: (s.room, s.course_code))
    for index, s in enumerate(ordered):
        if allowed is not None and s.course_code.upper() not in allowed:
            continue
        if s.day not in DAY_CODES:
            continue

        day = monday + timedelta(days=DAY_CODES.index(s.day))
        if period_end is not None and day > period_end:
            continue

        begin = _at(day, s.start_minutes)
        # start >= end sessions become zero-length events
        end = max(begin, _at(day, s.end_minutes))

        summary = f"{s.course_code} {s.lesson_type}"
        if s.subgroup:
            summary += f" ({s.subgroup})"

        events.append(
            {
                "uid": f"cru-{s.course_code}-{s.day}-{index}@{uid_domain}",
                "course_code": s.course_code,
                "summary": summary,
                "begin": begin,
                "end": end,
                "location": s.room,
                "subgroup": s.subgroup,
            }
        )

    return events


def events_to_ics(events: list[dict[str, Any]]) -> str:
    """
    Render calendar events (see build_calendar_events) as iCalendar text.
    """
    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//cruschedule//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    for ev in events:
        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(ev['uid'])}")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{_dt_local(ev['begin'])}")
        lines.append(f"DTEND:{_dt_local(ev['end'])}")
        lines.append(f"SUMMARY:{_ics_escape(ev['summary'])}")
        if ev.get("location"):
            lines.append(f"LOCATION:{_ics_escape(ev['location'])}")
        lines.append("END:VEVENT")

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    return "\r\n".join(lines) + "\r\n"


def export_sessions_to_ics(
    sessions: Iterable[Session],
    out_path: str | Path,
    week_start: date,
    courses: Optional[Iterable[str]] = None,
    period_end: Optional[date] = None,
    uid_domain: str = DEFAULT_UID_DOMAIN,
) -> int:
    """
    Export sessions to an .ics file. Returns number of exported events.
    """
    events = build_calendar_events(
        sessions, week_start, courses=courses, period_end=period_end, uid_domain=uid_domain
    )

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(events_to_ics(events), encoding="utf-8", newline="")
    return len(events)
