from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Sequence

from ..core.constants import MONEY_QUANTUM
from ..core.enums import PayrollStatus, WorkingHourStatus
from ..profiles.repository import ProfileRepository
from ..working_hours.model import WorkingHour
from ..working_hours.repository import WorkingHoursRepository
from .model import Payroll
from .repository import PayrollRepository


@dataclass(frozen=True)
class EmployeeHours:
    """Eligible (approved, unpaid, unlinked) hours of one employee in a window."""

    profile_id: int
    working_hours: tuple[WorkingHour, ...]
    total_hours: Decimal
    overtime_hours: Decimal
    regular_hours: Decimal
    avg_hourly_rate: Decimal

    @property
    def working_hour_ids(self) -> tuple[int, ...]:
        return tuple(w.id for w in self.working_hours)


def eligible_hours(
    working_hours: Iterable[WorkingHour],
    *,
    linked_ids: set[int],
    payrolls: Iterable[Payroll],
    start: Optional[date],
    end: Optional[date],
) -> list[WorkingHour]:
    """Approved rows in [start, end] that no payroll has consumed yet.

    A row is consumed when it is linked to a payroll, or when its date falls
    inside a paid payroll period of the same employee.
    """

    paid: dict[int, list[Payroll]] = defaultdict(list)
    for p in payrolls:
        if p.status == PayrollStatus.PAID:
            paid[p.profile_id].append(p)

    out = []
    for w in working_hours:
        if w.status != WorkingHourStatus.APPROVED:
            continue
        if (start and w.date < start) or (end and w.date > end):
            continue
        if w.id in linked_ids:
            continue
        if any(p.covers(w.date) for p in paid.get(w.profile_id, ())):
            continue
        out.append(w)
    return out


def summarize(profile_id: int, rows: Sequence[WorkingHour], *, base_rate: Decimal) -> EmployeeHours:
    # Simple mean of per-row rates, not weighted by hours.
    rates = [w.hourly_rate if w.hourly_rate is not None else base_rate for w in rows]
    total = sum((w.total_hours for w in rows), Decimal("0"))
    overtime = sum((w.overtime_hours for w in rows), Decimal("0"))
    avg_rate = (sum(rates, Decimal("0")) / len(rates)).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    return EmployeeHours(
        profile_id=profile_id,
        working_hours=tuple(sorted(rows, key=lambda w: (w.date, w.id))),
        total_hours=total,
        overtime_hours=overtime,
        regular_hours=total - overtime,
        avg_hourly_rate=avg_rate,
    )


def group_by_employee(rows: Iterable[WorkingHour], base_rates: Mapping[int, Decimal]) -> list[EmployeeHours]:
    grouped: dict[int, list[WorkingHour]] = defaultdict(list)
    for w in rows:
        grouped[w.profile_id].append(w)

    out = []
    for profile_id in sorted(grouped):
        summary = summarize(profile_id, grouped[profile_id], base_rate=base_rates.get(profile_id, Decimal("0")))
        if summary.total_hours > 0:
            out.append(summary)
    return out


class WorkingHoursAggregator:
    """Reads fresh from the store on every call; results are never cached."""

    def __init__(self, working_hours: WorkingHoursRepository, payrolls: PayrollRepository, profiles: ProfileRepository):
        self._hours = working_hours
        self._payrolls = payrolls
        self._profiles = profiles

    def aggregate(
        self,
        *,
        start: Optional[date],
        end: Optional[date],
        profile_ids: Optional[Iterable[int]] = None,
    ) -> list[EmployeeHours]:
        """Eligible hours per employee; a missing bound leaves that side of the window open."""

        ids = None if profile_ids is None else list(profile_ids)
        rows = self._hours.list_filtered(start=start, end=end, profile_ids=ids, status=WorkingHourStatus.APPROVED)
        if not rows:
            return []

        employee_ids = sorted({w.profile_id for w in rows})
        linked = self._payrolls.linked_working_hour_ids(w.id for w in rows)
        payrolls = self._payrolls.list_for_profiles(employee_ids)
        base_rates = {p.id: p.hourly_rate for p in self._profiles.list_by_ids(employee_ids)}

        eligible = eligible_hours(rows, linked_ids=linked, payrolls=payrolls, start=start, end=end)
        return group_by_employee(eligible, base_rates)
