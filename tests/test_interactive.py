import io
import unittest
from unittest import mock

from rich.console import Console

from cruschedule import interactive
from cruschedule.collection import SessionSet
from cruschedule.errors import SourceUnavailableError
from cruschedule.model import Session

SESSIONS = SessionSet(
    [
        Session("ME01", "TD", 24, "L", "10:00", "12:00", "B103", "F1", 1),
        Session("MC01", "CM", 60, "L", "11:00", "13:00", "B103", "F1", 1),
    ]
)


class TestInteractive(unittest.TestCase):
    def _run(self, answers: list[str], load_fn=lambda d: SESSIONS) -> str:
        buf = io.StringIO()
        console = Console(file=buf, width=120, color_system=None)
        with mock.patch.object(interactive, "console", console), mock.patch.object(
            interactive, "_prompt", side_effect=answers
        ):
            interactive.run_interactive(None, load_fn=load_fn)
        return buf.getvalue()

    def test_exit(self) -> None:
        out = self._run(["0"])
        self.assertIn("sessions=2", out)
        self.assertIn("Bye.", out)

    def test_room_capacity_flow(self) -> None:
        out = self._run(["2", "b103", "0"])
        self.assertIn("60", out)

    def test_query_error_does_not_stop_the_loop(self) -> None:
        out = self._run(["2", "Z999", "5", "0"])
        self.assertIn("Z999", out)
        self.assertIn("Conflicts (1)", out)
        self.assertIn("Bye.", out)

    def test_invalid_choice(self) -> None:
        out = self._run(["42", "0"])
        self.assertIn("Invalid choice.", out)

    def test_missing_data_starts_empty(self) -> None:
        def load_fn(d):
            raise SourceUnavailableError("no data")

        out = self._run(["0"], load_fn=load_fn)
        self.assertIn("no data", out)
        self.assertIn("sessions=0", out)


if __name__ == "__main__":
    unittest.main()
