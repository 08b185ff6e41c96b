from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import NewRosterEntry, RosterEntry


class RosterRepository(Protocol):
    def get_by_id(self, roster_id: int) -> Optional[RosterEntry]:
        raise NotImplementedError

    def list_by_ids(self, roster_ids: Iterable[int]) -> Sequence[RosterEntry]:
        raise NotImplementedError

    def list_range(self, *, start: date, end: date, profile_id: Optional[int] = None) -> Sequence[RosterEntry]:
        raise NotImplementedError

    def insert_many(self, entries: Sequence[NewRosterEntry]) -> list[int]:
        """Insert all rows in one transaction; returns new ids in input order."""

        raise NotImplementedError

    def update(self, roster_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def delete(self, roster_id: int) -> bool:
        raise NotImplementedError
