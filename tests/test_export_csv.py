import csv
import tempfile
import unittest
from pathlib import Path

from cruschedule.export_csv import CSV_HEADER, export_sessions_to_csv, sessions_to_csv
from cruschedule.model import Session

SESSIONS = [
    Session("MC01", "CM", 60, "V", "8:00", "9:00", "C201", "F1", 1),
    Session("ME01", "TD", 24, "L", "10:00", "12:00", "B103", "F1", 1),
    Session("ME01", "TD", 24, "L", "10:00", "12:00", "B103", "F1", 1),
]


class TestExportCSV(unittest.TestCase):
    def test_header_and_rows_in_timetable_order(self) -> None:
        lines = sessions_to_csv(SESSIONS).splitlines()
        self.assertEqual(lines[0], ",".join(CSV_HEADER))
        self.assertEqual(lines[0], "courseCode,lessonType,capacity,day,startTime,endTime,room,subgroup")
        self.assertEqual(lines[1], "ME01,TD,24,L,10:00,12:00,B103,F1")
        self.assertEqual(lines[2], "MC01,CM,60,V,8:00,9:00,C201,F1")
        self.assertEqual(len(lines), 3)

    def test_export_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "sessions.csv"
            n = export_sessions_to_csv(SESSIONS, out)
            self.assertEqual(n, 2)

            with out.open(encoding="utf-8", newline="") as f:
                rows = list(csv.DictReader(f))
            self.assertEqual([r["room"] for r in rows], ["B103", "C201"])
            self.assertEqual(rows[0]["capacity"], "24")
            self.assertEqual(rows[0]["courseCode"], "ME01")
            self.assertEqual(rows[1]["startTime"], "8:00")


if __name__ == "__main__":
    unittest.main()
