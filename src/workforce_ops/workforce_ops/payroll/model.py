from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PayrollStatus

ZERO = Decimal("0")


@dataclass(frozen=True)
class Payroll:
    """Thực thể miền (domain): one employee's pay-period summary."""

    id: int
    profile_id: int
    pay_period_start: date
    pay_period_end: date
    total_hours: Decimal
    hourly_rate: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal
    status: PayrollStatus = PayrollStatus.PENDING
    overtime_pay: Decimal = ZERO
    bonus: Decimal = ZERO
    tax: Decimal = ZERO
    superannuation: Decimal = ZERO
    other_deductions: Decimal = ZERO
    bank_account_id: Optional[int] = None
    created_at: Optional[datetime] = None

    def covers(self, day: date) -> bool:
        return self.pay_period_start <= day <= self.pay_period_end


@dataclass(frozen=True)
class NewPayroll:
    profile_id: int
    pay_period_start: date
    pay_period_end: date
    total_hours: Decimal
    hourly_rate: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal
    overtime_pay: Decimal = ZERO
    status: PayrollStatus = PayrollStatus.PENDING
    bank_account_id: Optional[int] = None


@dataclass(frozen=True)
class PayrollWorkingHoursLink:
    payroll_id: int
    working_hours_id: int
