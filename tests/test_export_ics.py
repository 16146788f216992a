import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

from cruschedule.collection import SessionSet
from cruschedule.errors import InvalidInputError
from cruschedule.export_ics import build_calendar_events, events_to_ics, export_sessions_to_ics
from cruschedule.model import Session
from cruschedule.util import next_monday

SESSIONS = SessionSet(
    [
        Session("ME01", "TD", 24, "L", "10:00", "12:00", "B103", "F1", 1),
        Session("MC01", "CM", 60, "V", "8:00", "9:00", "C201", "F1", 1),
    ]
)

MONDAY = date(2026, 2, 2)


class TestCalendarEvents(unittest.TestCase):
    def test_events_in_reference_week(self) -> None:
        events = build_calendar_events(SESSIONS, MONDAY)
        self.assertEqual(len(events), 2)

        by_course = {ev["course_code"]: ev for ev in events}
        self.assertEqual(by_course["ME01"]["begin"], datetime(2026, 2, 2, 10, 0))
        self.assertEqual(by_course["ME01"]["end"], datetime(2026, 2, 2, 12, 0))
        self.assertEqual(by_course["ME01"]["summary"], "ME01 TD (F1)")
        self.assertEqual(by_course["ME01"]["location"], "B103")
        self.assertEqual(by_course["MC01"]["begin"], datetime(2026, 2, 6, 8, 0))

    def test_start_date_moves_to_next_monday(self) -> None:
        self.assertEqual(next_monday(date(2026, 2, 4)), date(2026, 2, 9))
        self.assertEqual(next_monday(MONDAY), MONDAY)

        events = build_calendar_events(SESSIONS, date(2026, 2, 4))
        self.assertEqual(min(ev["begin"] for ev in events).date(), date(2026, 2, 9))

    def test_course_allow_list(self) -> None:
        events = build_calendar_events(SESSIONS, MONDAY, courses=["me01"])
        self.assertEqual([ev["course_code"] for ev in events], ["ME01"])

    def test_period_end_skips_later_days(self) -> None:
        events = build_calendar_events(SESSIONS, MONDAY, period_end=date(2026, 2, 4))
        self.assertEqual([ev["course_code"] for ev in events], ["ME01"])

    def test_end_before_start_is_rejected(self) -> None:
        with self.assertRaises(InvalidInputError):
            build_calendar_events(SESSIONS, MONDAY, period_end=date(2026, 2, 1))

    def test_uid_domain(self) -> None:
        events = build_calendar_events(SESSIONS, MONDAY, uid_domain="univ.example")
        self.assertTrue(all(ev["uid"].endswith("@univ.example") for ev in events))
        self.assertEqual(len({ev["uid"] for ev in events}), 2)

    def test_reversed_session_becomes_zero_length_event(self) -> None:
        reversed_session = Session("ME01", "TD", 24, "L", "12:00", "10:00", "B103", "F1", 1)
        events = build_calendar_events([reversed_session], MONDAY)

        self.assertEqual(events[0]["begin"], datetime(2026, 2, 2, 12, 0))
        self.assertEqual(events[0]["end"], events[0]["begin"])
        text = events_to_ics(events)
        self.assertIn("DTEND:20260202T120000", text)


class TestExportICS(unittest.TestCase):
    def test_export_creates_file_and_contains_calendar(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "out" / "agenda.ics"
            n = export_sessions_to_ics(SESSIONS, out, week_start=MONDAY)
            self.assertEqual(n, 2)

            text = out.read_text(encoding="utf-8")
            self.assertIn("BEGIN:VCALENDAR", text)
            self.assertEqual(text.count("BEGIN:VEVENT"), 2)
            self.assertIn("DTSTART:20260202T100000", text)
            self.assertIn("SUMMARY:ME01 TD (F1)", text)
            self.assertIn("LOCATION:C201", text)
            self.assertIn(b"\r\n", out.read_bytes())

    def test_export_without_match_has_no_event(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "agenda.ics"
            n = export_sessions_to_ics(SESSIONS, out, week_start=MONDAY, courses=["XX01"])
            self.assertEqual(n, 0)
            self.assertNotIn("BEGIN:VEVENT", out.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
