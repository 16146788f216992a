from __future__ import annotations

import argparse
import logging
from pathlib import Path

import requests
from bs4 import BeautifulSoup

from cruschedule.storage import CRU_FILENAME, resolve_data_dir
from cruschedule.util import configure_logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def _looks_like_html(resp: requests.Response) -> bool:
    content_type = resp.headers.get("Content-Type", "")
    if "html" in content_type.lower():
        return True
    return resp.text.lstrip()[:1] == "<"


def extract_cru_text(resp: requests.Response) -> str:
    """
    Return the CRU text of a response.

    Exports published as a web page (the ones ending with the
    'Page générée en ...' footer) are reduced to their visible text,
    one line per block.
    """
    if not _looks_like_html(resp):
        return resp.text

    soup = BeautifulSoup(resp.text, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return soup.get_text("\n")


def fetch_cru(
    url: str,
    unit: str,
    data_dir: str | Path | None = None,
    refresh: bool = False,
    timeout: float = 30,
) -> Path:
    """
    Download one CRU export and cache it as <data_dir>/<unit>/edt.cru.

    An existing file is kept unless refresh is set.
    """
    unit = unit.strip()
    if not unit:
        raise ValueError("Unit name must not be empty")

    out_file = resolve_data_dir(data_dir) / unit / CRU_FILENAME
    if out_file.exists() and not refresh:
        logger.info("SKIP  %s (already cached)", unit)
        return out_file

    logger.info("FETCH %s from %s", unit, url)
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()

    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(extract_cru_text(resp), encoding="utf-8")
    return out_file


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cruschedule.fetch", description="Download a CRU export into the data directory")
    p.add_argument("url", type=str, help="URL of the CRU export")
    p.add_argument("unit", type=str, help="Unit name (sub-directory of the data directory)")
    p.add_argument("--data-dir", type=Path, default=None, help="Data directory")
    p.add_argument("--refresh", action="store_true", help="Re-fetch and overwrite an existing edt.cru")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=False)
    path = fetch_cru(args.url, args.unit, data_dir=args.data_dir, refresh=args.refresh)
    print(f"Saved: {path}")


if __name__ == "__main__":
    main()
