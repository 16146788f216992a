"""
Deduplicating session collection.

A SessionSet holds each Session at most once (by value). Iteration follows
insertion order, which carries no meaning; use sort() for a stable order.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from cruschedule.model import Session


class SessionSet:
    def __init__(self, sessions: Iterable[Session] = ()) -> None:
        # dict keeps insertion order and gives O(1) membership by value
        self._items: Dict[Session, None] = {}
        self.update(sessions)

    @classmethod
    def empty(cls) -> SessionSet:
        return cls()

    def add(self, session: Session) -> SessionSet:
        """Insert a session; no-op if an equal one is already present."""
        self._items.setdefault(session, None)
        return self

    def update(self, sessions: Iterable[Session]) -> SessionSet:
        for s in sessions:
            self.add(s)
        return self

    def contains(self, session: Session) -> bool:
        return session in self._items

    def remove(self, session: Session) -> SessionSet:
        self._items.pop(session, None)
        return self

    def filter(self, predicate: Callable[[Session], bool]) -> SessionSet:
        """Return a new SessionSet with the sessions matching predicate."""
        return SessionSet(s for s in self._items if predicate(s))

    def sort(self, tie_break: Optional[Callable[[Session], Any]] = None) -> SessionSet:
        """
        Sort in place by (weekday, start time), then by tie_break if given.
        """
        if tie_break is None:
            key = Session.sort_key
        else:
            key = lambda s: (s.sort_key(), tie_break(s))  # noqa: E731
        self._items = dict.fromkeys(sorted(self._items, key=key))
        return self

    def to_list(self) -> List[Session]:
        return list(self._items)

    def __contains__(self, session: object) -> bool:
        return session in self._items

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionSet):
            return NotImplemented
        return set(self._items) == set(other._items)

    def __repr__(self) -> str:
        return f"SessionSet({len(self._items)} sessions)"
