from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from ..common.validators import require_positive_id, to_decimal
from ..core.constants import MONEY_QUANTUM
from ..core.enums import PayrollStatus
from ..core.exceptions import BusinessRuleError, NotFoundError, PayrollOverlapError, ValidationError
from ..notifications.service import NotificationService
from .aggregator import WorkingHoursAggregator
from .calculator.base import DeductionPolicy
from .calculator.flat_rate import FlatRateDeductionPolicy
from .model import NewPayroll, Payroll
from .periods import find_overlaps
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "pay_period_start",
        "pay_period_end",
        "total_hours",
        "hourly_rate",
        "gross_pay",
        "deductions",
        "overtime_pay",
        "bonus",
        "tax",
        "superannuation",
        "other_deductions",
        "bank_account_id",
    }
)


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def apply_edit(payroll: Payroll, field: str, value: Any) -> Payroll:
    """Apply one edit and recompute dependent amounts.

    - total_hours / hourly_rate -> gross = hours x rate, net = gross - deductions
    - deductions / gross_pay    -> net = gross - deductions
    """

    if field not in EDITABLE_FIELDS:
        raise ValidationError(f"Field cannot be edited: {field}")

    if field in ("pay_period_start", "pay_period_end"):
        if not isinstance(value, date):
            raise ValidationError(f"{field} must be a date")
        return replace(payroll, **{field: value})

    if field == "bank_account_id":
        if value is None or value == "":
            return replace(payroll, bank_account_id=None)
        return replace(payroll, bank_account_id=require_positive_id(value, "Bank account"))

    amount = to_decimal(value, field)
    updated = replace(payroll, **{field: amount})

    if field in ("total_hours", "hourly_rate"):
        gross = _money(updated.total_hours * updated.hourly_rate)
        updated = replace(updated, gross_pay=gross, net_pay=gross - updated.deductions)
    elif field in ("deductions", "gross_pay"):
        updated = replace(updated, net_pay=updated.gross_pay - updated.deductions)
    return updated


class PayrollService:
    def __init__(
        self,
        payrolls: PayrollRepository,
        aggregator: WorkingHoursAggregator,
        notifications: NotificationService,
        *,
        deduction_policy: Optional[DeductionPolicy] = None,
    ):
        self._payrolls = payrolls
        self._aggregator = aggregator
        self._notifications = notifications
        self._policy = deduction_policy or FlatRateDeductionPolicy()

    def list_recent(self, *, limit: int = 200) -> Sequence[Payroll]:
        return self._payrolls.list_recent(limit=limit)

    def get(self, payroll_id: int) -> Payroll:
        payroll = self._payrolls.get_by_id(require_positive_id(payroll_id, "Payroll"))
        if not payroll:
            raise NotFoundError("Payroll not found")
        return payroll

    def _check_period(self, payroll: Payroll) -> None:
        if payroll.pay_period_end < payroll.pay_period_start:
            raise ValidationError("End date must be on or after start date")
        clash = find_overlaps(
            self._payrolls.list_for_profiles([payroll.profile_id]),
            profile_ids=[payroll.profile_id],
            start=payroll.pay_period_start,
            end=payroll.pay_period_end,
            exclude_payroll_id=payroll.id,
        )
        if clash:
            raise PayrollOverlapError("Pay period overlaps another payroll of this employee", [payroll.profile_id])

    def update(self, payroll_id: int, changes: list[tuple[str, Any]]) -> Payroll:
        """Apply edits in the order given, then persist.

        ``changes`` is ordered because the last edited field decides what gets recomputed.
        """

        current = self.get(payroll_id)
        if current.status == PayrollStatus.PAID:
            raise BusinessRuleError("Paid payroll cannot be edited")

        edited = current
        for field, value in changes:
            edited = apply_edit(edited, field, value)
        if edited == current:
            return current

        if (edited.pay_period_start, edited.pay_period_end) != (current.pay_period_start, current.pay_period_end):
            self._check_period(edited)

        patch = {
            f: getattr(edited, f)
            for f in (*EDITABLE_FIELDS, "net_pay")
            if getattr(edited, f) != getattr(current, f)
        }
        if not self._payrolls.update(current.id, patch):
            raise ValidationError("Payroll update failed")
        return self.get(current.id)

    def approve(self, payroll_id: int) -> None:
        payroll = self.get(payroll_id)
        if payroll.status != PayrollStatus.PENDING:
            raise BusinessRuleError(f"Only pending payroll can be approved (current: {payroll.status.value})")
        if not self._payrolls.set_status(payroll.id, PayrollStatus.APPROVED):
            raise ValidationError("Payroll approval failed")

    def mark_paid(self, payroll_id: int) -> None:
        payroll = self.get(payroll_id)
        if payroll.status != PayrollStatus.APPROVED:
            raise BusinessRuleError(f"Only approved payroll can be paid (current: {payroll.status.value})")
        if not self._payrolls.mark_paid(payroll.id):
            raise ValidationError("Marking payroll as paid failed")
        logger.info("payroll %s paid (employee=%s, net=%s)", payroll.id, payroll.profile_id, payroll.net_pay)

    def delete(self, payroll_id: int) -> None:
        """Delete a payroll with its links; its hours become available again."""

        payroll = self.get(payroll_id)
        if payroll.status == PayrollStatus.PAID:
            raise BusinessRuleError("Paid payroll cannot be deleted")
        if not self._payrolls.delete_with_links(payroll.id):
            raise ValidationError("Payroll delete failed")

    def quick_generate(
        self,
        *,
        profile_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        deductions: Optional[Decimal] = None,
        bank_account_id: Optional[int] = None,
    ) -> int:
        """One-employee payroll over all of their available hours.

        The period defaults to the first..last date of those hours; gross is
        total hours x mean rate, deductions default to the policy.
        """

        profile_id = require_positive_id(profile_id, "Employee")
        if start and end and end < start:
            raise ValidationError("End date must be on or after start date")

        summaries = self._aggregator.aggregate(
            start=start,
            end=end,
            profile_ids=[profile_id],
        )
        if not summaries:
            raise BusinessRuleError("Employee has no approved, unpaid hours")
        hours = summaries[0]

        period_start = start or hours.working_hours[0].date
        period_end = end or hours.working_hours[-1].date
        clash = find_overlaps(
            self._payrolls.list_for_profiles([profile_id]),
            profile_ids=[profile_id],
            start=period_start,
            end=period_end,
        )
        if clash:
            raise PayrollOverlapError("Pay period overlaps another payroll of this employee", [profile_id])

        gross = _money(hours.total_hours * hours.avg_hourly_rate)
        if deductions is None:
            deductions = self._policy.compute(gross)
        elif deductions < 0:
            raise ValidationError("Deductions cannot be negative")
        deductions = _money(deductions)

        new = NewPayroll(
            profile_id=profile_id,
            pay_period_start=period_start,
            pay_period_end=period_end,
            total_hours=hours.total_hours,
            hourly_rate=hours.avg_hourly_rate,
            gross_pay=gross,
            deductions=deductions,
            net_pay=gross - deductions,
            bank_account_id=bank_account_id,
        )
        payroll_id = self._payrolls.create_with_links(new, hours.working_hour_ids)
        logger.info("quick payroll %s for employee %s linked %d hours", payroll_id, profile_id, len(hours.working_hours))
        self._notifications.notify_payrolls_created([self.get(payroll_id)])
        return payroll_id
