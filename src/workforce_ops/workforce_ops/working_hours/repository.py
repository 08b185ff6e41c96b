from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import WorkingHourStatus
from .model import NewWorkingHour, WorkingHour


class WorkingHoursRepository(Protocol):
    def get_by_id(self, working_hour_id: int) -> Optional[WorkingHour]:
        raise NotImplementedError

    def list_by_ids(self, working_hour_ids: Iterable[int]) -> Sequence[WorkingHour]:
        raise NotImplementedError

    def list_filtered(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        profile_ids: Optional[Iterable[int]] = None,
        status: Optional[WorkingHourStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[WorkingHour]:
        raise NotImplementedError

    def roster_ids_with_hours(self, roster_ids: Iterable[int]) -> set[int]:
        """Subset of roster ids that already have a derived working-hour row."""

        raise NotImplementedError

    def insert_many(self, rows: Sequence[NewWorkingHour]) -> list[int]:
        raise NotImplementedError

    def update(self, working_hour_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def set_status(
        self,
        working_hour_id: int,
        status: WorkingHourStatus,
        *,
        expected: Optional[WorkingHourStatus] = None,
    ) -> bool:
        """Change the status; with ``expected`` only if the row is still in that status."""

        raise NotImplementedError

    def approve(self, working_hour_id: int) -> bool:
        """pending -> approved and lock the source roster, in one transaction.

        False when the row is no longer pending.
        """

        raise NotImplementedError

    def delete(self, working_hour_id: int) -> bool:
        raise NotImplementedError
