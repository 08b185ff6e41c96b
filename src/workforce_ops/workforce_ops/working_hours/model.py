from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..core.constants import MONEY_QUANTUM, OVERTIME_MULTIPLIER
from ..core.enums import WorkingHourStatus

LOCKED_STATUSES = frozenset({WorkingHourStatus.APPROVED, WorkingHourStatus.PAID})


def compute_payable(
    total_hours: Decimal,
    overtime_hours: Decimal,
    rate: Decimal,
    *,
    overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
) -> Decimal:
    """Regular hours at rate, overtime hours at rate x multiplier."""
    regular = total_hours - overtime_hours
    amount = regular * rate + overtime_hours * rate * overtime_multiplier
    return amount.quantize(MONEY_QUANTUM)


@dataclass(frozen=True)
class WorkingHour:
    """Thực thể miền (domain): worked time, payroll input once approved."""

    id: int
    profile_id: int
    client_id: int
    project_id: int
    date: date
    start_time: time
    end_time: time
    total_hours: Decimal
    status: WorkingHourStatus = WorkingHourStatus.PENDING
    roster_id: Optional[int] = None
    actual_hours: Optional[Decimal] = None
    overtime_hours: Decimal = Decimal("0")
    hourly_rate: Optional[Decimal] = None
    payable_amount: Decimal = Decimal("0")
    sign_in_time: Optional[datetime] = None
    sign_out_time: Optional[datetime] = None
    notes: Optional[str] = None

    @property
    def regular_hours(self) -> Decimal:
        return self.total_hours - self.overtime_hours

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES

    @property
    def is_editable(self) -> bool:
        return not self.is_locked


@dataclass(frozen=True)
class NewWorkingHour:
    profile_id: int
    client_id: int
    project_id: int
    date: date
    start_time: time
    end_time: time
    total_hours: Decimal
    overtime_hours: Decimal
    hourly_rate: Optional[Decimal]
    payable_amount: Decimal
    roster_id: Optional[int] = None
    actual_hours: Optional[Decimal] = None
    sign_in_time: Optional[datetime] = None
    sign_out_time: Optional[datetime] = None
    status: WorkingHourStatus = WorkingHourStatus.PENDING
    notes: Optional[str] = None
