"""
Exception types shared by the parser, the loader and the queries.

Parse errors are contained inside the document parse (one bad line never
aborts the rest of the file). Every other error is raised to the caller,
which decides how to present it (the CLI prints it and exits with 1).
"""

from __future__ import annotations


class ScheduleError(Exception):
    """Base class for every error raised by cruschedule."""


class ParseError(ScheduleError, ValueError):
    """One CRU line does not match the slot grammar."""

    def __init__(self, line: str, reason: str = "does not match the slot grammar") -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"Invalid slot line ({reason}): {line!r}")


class NotFoundError(ScheduleError, LookupError):
    """A lookup key (course, room) matches no session."""


class InvalidInputError(ScheduleError, ValueError):
    """A caller supplied day, time or date argument is malformed or out of range."""


class InvalidTimeFormat(InvalidInputError):
    """A time string is not H:MM / HH:MM or is out of range."""


class SourceUnavailableError(ScheduleError):
    """The loader found no CRU document to read."""
