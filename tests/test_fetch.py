import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from cruschedule.fetch import fetch_cru
from cruschedule.storage import load_sessions

CRU = "+ME01\n1,C1,P=48,H=L 10:00-12:00,F1,S=B103//\n"

HTML = """<html><head><style>p {color: red}</style></head>
<body><pre>+ME01
1,C1,P=48,H=L 10:00-12:00,F1,S=B103//
1,D1,P=24,H=ME 16:00-18:00,F1,S=S104//
</pre><p>Page générée en : 0.0173 sec</p></body></html>"""


def _response(text: str, content_type: str) -> mock.Mock:
    resp = mock.Mock()
    resp.text = text
    resp.headers = {"Content-Type": content_type}
    resp.raise_for_status.return_value = None
    return resp


class TestFetch(unittest.TestCase):
    def test_plain_text_export_is_cached(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with mock.patch("cruschedule.fetch.requests.get", return_value=_response(CRU, "text/plain")) as get:
                path = fetch_cru("https://example.org/edt.cru", "AB", data_dir=d)

            get.assert_called_once_with("https://example.org/edt.cru", timeout=30)
            self.assertEqual(path, Path(d) / "AB" / "edt.cru")
            self.assertEqual(path.read_text(encoding="utf-8"), CRU)

    def test_html_export_is_reduced_to_text(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with mock.patch("cruschedule.fetch.requests.get", return_value=_response(HTML, "text/html; charset=utf-8")):
                path = fetch_cru("https://example.org/edt", "AB", data_dir=d)

            text = path.read_text(encoding="utf-8")
            self.assertNotIn("<pre>", text)
            self.assertNotIn("color: red", text)
            self.assertEqual(len(load_sessions(d)), 2)

    def test_existing_file_kept_unless_refresh(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            unit = Path(d) / "AB"
            unit.mkdir()
            (unit / "edt.cru").write_text("old", encoding="utf-8")

            with mock.patch("cruschedule.fetch.requests.get") as get:
                fetch_cru("https://example.org/edt.cru", "AB", data_dir=d)
            get.assert_not_called()
            self.assertEqual((unit / "edt.cru").read_text(encoding="utf-8"), "old")

            with mock.patch("cruschedule.fetch.requests.get", return_value=_response(CRU, "text/plain")):
                fetch_cru("https://example.org/edt.cru", "AB", data_dir=d, refresh=True)
            self.assertEqual((unit / "edt.cru").read_text(encoding="utf-8"), CRU)

    def test_http_error_propagates(self) -> None:
        resp = _response("", "text/plain")
        resp.raise_for_status.side_effect = requests.HTTPError("404")
        with tempfile.TemporaryDirectory() as d:
            with mock.patch("cruschedule.fetch.requests.get", return_value=resp):
                with self.assertRaises(requests.HTTPError):
                    fetch_cru("https://example.org/missing", "AB", data_dir=d)
            self.assertFalse((Path(d) / "AB" / "edt.cru").exists())

    def test_empty_unit_rejected(self) -> None:
        with self.assertRaises(ValueError):
            fetch_cru("https://example.org/edt.cru", "  ")


if __name__ == "__main__":
    unittest.main()
