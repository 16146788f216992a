"""
Loading timetable data from disk.

The data directory holds one sub-directory per timetable unit (e.g. one per
degree or department), each containing an 'edt.cru' export:

    data/
      AB/edt.cru
      CD/edt.cru

Design rationale:
- every unit is parsed on its own and merged into ONE SessionSet
- sessions listed in several units are kept once (value equality)
- data is loaded once per run; all queries of that run share the snapshot
"""

from __future__ import annotations

import logging
from pathlib import Path

from cruschedule.collection import SessionSet
from cruschedule.errors import SourceUnavailableError
from cruschedule.parse import parse_cru

logger = logging.getLogger(__name__)

CRU_FILENAME = "edt.cru"


def _default_data_dir() -> Path:
    """
    Return the default data directory inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can pass their own directory.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data"


def resolve_data_dir(path: str | Path | None = None) -> Path:
    return Path(path) if path is not None else _default_data_dir()


def find_cru_files(data_dir: str | Path | None = None) -> list[Path]:
    """
    List '<unit>/edt.cru' files, sorted by unit name.
    Raises SourceUnavailableError if the data directory does not exist.
    """
    base = resolve_data_dir(data_dir)
    if not base.is_dir():
        raise SourceUnavailableError(
            f'Data directory "{base}" not found. Import or fetch CRU files first.'
        )

    return [
        unit / CRU_FILENAME
        for unit in sorted(p for p in base.iterdir() if p.is_dir())
        if (unit / CRU_FILENAME).is_file()
    ]


def load_sessions(data_dir: str | Path | None = None) -> SessionSet:
    """
    Parse every unit of the data directory into one SessionSet.

    Raises SourceUnavailableError when there is no CRU file at all.
    A data set without any valid session is returned as an empty set.
    """
    files = find_cru_files(data_dir)
    if not files:
        raise SourceUnavailableError(
            f"No {CRU_FILENAME} file found in the sub-directories of {resolve_data_dir(data_dir)}."
        )

    sessions = SessionSet.empty()
    for cru_file in files:
        before = len(sessions)
        # CRU exports are not always clean UTF-8
        text = cru_file.read_text(encoding="utf-8", errors="replace")
        parse_cru(text, sessions)
        logger.debug("Loaded %s: %d new sessions", cru_file.parent.name, len(sessions) - before)

    if not sessions:
        logger.warning("No session found in the CRU data of %s", resolve_data_dir(data_dir))

    return sessions
