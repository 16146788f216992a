"""
Unit tests for loading the data directory.

Storage contract:
- missing data directory or no edt.cru at all -> SourceUnavailableError
- one edt.cru per sub-directory, merged into one SessionSet
- sessions present in several units are kept once
"""

import tempfile
import unittest
from pathlib import Path

from cruschedule.errors import SourceUnavailableError
from cruschedule.storage import find_cru_files, load_sessions

UNIT_A = "+ME01\n1,C1,P=48,H=L 10:00-12:00,F1,S=B103//\n1,D1,P=24,H=ME 16:00-18:00,F1,S=S104//\n"
UNIT_B = "+ME01\n1,C1,P=48,H=L 10:00-12:00,F1,S=B103//\n+MC01\n1,C1,P=60,H=MA 14:00-16:00,F1,S=C201//\n"


def _write_unit(base: Path, unit: str, text: str) -> None:
    (base / unit).mkdir(parents=True, exist_ok=True)
    (base / unit / "edt.cru").write_text(text, encoding="utf-8")


class TestStorage(unittest.TestCase):
    def test_missing_directory(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(SourceUnavailableError):
                load_sessions(Path(d) / "missing")

    def test_directory_without_cru_files(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            (Path(d) / "AB").mkdir()
            (Path(d) / "edt.cru").write_text(UNIT_A, encoding="utf-8")  # not in a unit directory
            with self.assertRaises(SourceUnavailableError):
                load_sessions(d)

    def test_units_are_merged_without_duplicates(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            base = Path(d)
            _write_unit(base, "AB", UNIT_A)
            _write_unit(base, "CD", UNIT_B)
            (base / "EF").mkdir()  # unit without export is ignored

            self.assertEqual([p.parent.name for p in find_cru_files(base)], ["AB", "CD"])

            sessions = load_sessions(base)
            self.assertEqual(len(sessions), 3)
            self.assertEqual({s.room for s in sessions}, {"B103", "S104", "C201"})

    def test_no_session_is_a_valid_empty_result(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            _write_unit(Path(d), "AB", "nothing to see here\n")
            with self.assertLogs("cruschedule.storage", level="WARNING"):
                sessions = load_sessions(d)
            self.assertEqual(len(sessions), 0)

    def test_latin1_file_does_not_crash(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            unit = Path(d) / "AB"
            unit.mkdir()
            (unit / "edt.cru").write_bytes((UNIT_A + "Page générée en 0.01 sec\n").encode("latin-1"))
            self.assertEqual(len(load_sessions(d)), 2)


if __name__ == "__main__":
    unittest.main()
