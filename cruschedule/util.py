"""Utility helpers."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from cruschedule.errors import InvalidInputError


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


def parse_date(value: str, label: str = "date") -> date:
    """Parse an ISO 'YYYY-MM-DD' argument or raise InvalidInputError."""
    if not value or not str(value).strip():
        raise InvalidInputError(f"Missing {label} date")
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidInputError(f"Invalid {label} date, expected YYYY-MM-DD: {value!r}") from exc


def next_monday(d: date) -> date:
    """First Monday on or after d."""
    return d + timedelta(days=(7 - d.weekday()) % 7)
