"""
Parsing (CRU text -> Sessions).

- Reads the raw text of one CRU timetable export
- Tracks the current course from '+CODE' header lines
- Turns EACH slot line into exactly ONE Session
- Collects everything into a deduplicating SessionSet

Example of a course block:

    +ME01
    1,C1,P=48,H=L 10:00-12:00,F1,S=B103//
    1,D1,P=24,H=ME 16:00-18:00,F1,S=S104//

Important rules:
- 1 slot line = 1 Session
- A broken slot line is logged and skipped, never fatal
- Footer lines ('Page générée en ...') and placeholder headers ('+UVUV')
  are skipped
"""

from __future__ import annotations

import argparse
import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cruschedule.collection import SessionSet
from cruschedule.errors import InvalidTimeFormat, ParseError
from cruschedule.intervals import to_minutes
from cruschedule.model import Session, map_lesson_type

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

SLOT_RE = re.compile(
    r"""
    ^(?P<group>\d+)\s*,\s*
    (?P<lesson>[A-Za-z]+\d+)\s*,\s*
    P\s*=\s*(?P<capacity>\d{1,3})\s*,\s*
    H\s*=\s*(?P<day>L|MA|ME|J|V)\s+
    (?P<start>\d{1,2}:\d{2})\s*-\s*(?P<end>\d{1,2}:\d{2})\s*,\s*
    (?P<subgroup>[A-Za-z]\d)\s*,\s*
    S\s*=\s*(?P<room>[A-Za-z0-9]{4})\s*//\s*$
    """,
    re.VERBOSE,
)

# Coarse shape check: "digits followed by a comma"
SLOT_SHAPE_RE = re.compile(r"^\d+\s*,")

FOOTER_PREFIX = "Page "
COURSE_PREFIX = "+"


class Mode(enum.Enum):
    NO_COURSE = "no_course"
    IN_COURSE = "in_course"


@dataclass
class ParseState:
    """Explicit state of the document scan (no module globals)."""

    current_course_code: Optional[str] = None
    mode: Mode = Mode.NO_COURSE

    def enter_course(self, header: str) -> None:
        code = header[len(COURSE_PREFIX):].strip()

        # Placeholder headers like "+UVUV" contain no digit at all
        if not any(ch.isdigit() for ch in code):
            logger.debug("Ignoring placeholder course header: %s", header)
            self.current_course_code = None
            self.mode = Mode.NO_COURSE
            return

        self.current_course_code = code
        self.mode = Mode.IN_COURSE
        logger.debug("Course: %s", code)


# ---------------------------------------------------------------------------
# Slot line parsing (CORE LOGIC)
# ---------------------------------------------------------------------------


def parse_slot_line(line: str, course_code: str) -> Session:
    """
    Parses exactly one slot line into exactly one Session.

    Raises ParseError if the line does not match the grammar or carries an
    impossible time (e.g. 25:00).
    """
    raw = line.strip()
    m = SLOT_RE.match(raw)
    if not m:
        raise ParseError(raw)

    start = m.group("start")
    end = m.group("end")

    # Grammar allows 1-2 digit hours, but the values must be real times
    try:
        to_minutes(start)
        to_minutes(end)
    except InvalidTimeFormat as exc:
        raise ParseError(raw, reason=str(exc)) from exc

    return Session(
        course_code=course_code,
        lesson_type=map_lesson_type(m.group("lesson")),
        capacity=int(m.group("capacity")),
        day=m.group("day"),
        start_time=start,
        end_time=end,
        room=m.group("room"),
        subgroup=m.group("subgroup"),
        group_index=int(m.group("group")),
    )


# ---------------------------------------------------------------------------
# Document parsing
# ---------------------------------------------------------------------------


def parse_cru(text: str, sessions: Optional[SessionSet] = None) -> SessionSet:
    """
    Parses the full text of a CRU export.

    Sessions are added to `sessions` if given (so several documents can be
    merged into one set), otherwise to a new SessionSet which is returned.
    A document without any valid slot yields an empty set.
    """
    target = sessions if sessions is not None else SessionSet.empty()
    state = ParseState()

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(FOOTER_PREFIX):
            logger.debug("Skipping footer line: %s", line)
            continue

        if line.startswith(COURSE_PREFIX):
            state.enter_course(line)
            continue

        if not SLOT_SHAPE_RE.match(line):
            logger.debug("Skipping line: %s", line)
            continue

        if state.mode is Mode.NO_COURSE or state.current_course_code is None:
            logger.debug("Skipping slot line outside of a course: %s", line)
            continue

        try:
            session = parse_slot_line(line, state.current_course_code)
        except ParseError as exc:
            logger.warning("Skipping invalid slot line in %s: %s", state.current_course_code, exc)
            continue

        target.add(session)

    return target


# ---------------------------------------------------------------------------
# Local debug
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cruschedule.parse",
        description="Parse one CRU file and print its sessions",
    )
    p.add_argument("path", type=Path, help="Path to an edt.cru file")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    text = args.path.read_text(encoding="utf-8", errors="replace")
    sessions = parse_cru(text).sort(tie_break=lambda s: s.room)

    for s in sessions:
        print(
            f"{s.course_code} {s.lesson_type} {s.day} {s.start_time}-{s.end_time} "
            f"{s.room} {s.subgroup} ({s.capacity} places)"
        )
    print(f"Parsed {len(sessions)} sessions from {args.path}")


if __name__ == "__main__":
    main()
