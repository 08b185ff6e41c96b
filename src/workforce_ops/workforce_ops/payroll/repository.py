from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import NewPayroll, Payroll


class PayrollRepository(Protocol):
    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        raise NotImplementedError

    def list_for_profiles(self, profile_ids: Iterable[int]) -> Sequence[Payroll]:
        raise NotImplementedError

    def list_recent(self, *, limit: int = 200) -> Sequence[Payroll]:
        raise NotImplementedError

    def create_with_links(self, payroll: NewPayroll, working_hour_ids: Sequence[int]) -> int:
        """Insert the payroll and its link rows in one transaction; returns payroll id."""

        raise NotImplementedError

    def linked_working_hour_ids(self, working_hour_ids: Optional[Iterable[int]] = None) -> set[int]:
        """Ids already linked to any payroll (restricted to the given ids when provided)."""

        raise NotImplementedError

    def working_hour_ids_for(self, payroll_id: int) -> list[int]:
        raise NotImplementedError

    def update(self, payroll_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def set_status(self, payroll_id: int, status: PayrollStatus) -> bool:
        raise NotImplementedError

    def mark_paid(self, payroll_id: int) -> bool:
        """Set payroll and its linked working hours to paid, atomically."""

        raise NotImplementedError

    def delete_with_links(self, payroll_id: int) -> bool:
        raise NotImplementedError
