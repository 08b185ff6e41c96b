"""Payroll generation wizard: scope -> preview -> commit.

Each stage is an explicit call so amounts can be reviewed before anything is
written. Only the commit stage touches the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from ..common.validators import require_date_range, require_positive_id
from ..core.constants import MONEY_QUANTUM, OVERTIME_MULTIPLIER
from ..core.enums import CommitStatus, PayrollStatus, WizardStage
from ..core.exceptions import BusinessRuleError, PayrollOverlapError, StoreError, ValidationError
from ..notifications.service import NotificationService
from .aggregator import EmployeeHours, WorkingHoursAggregator
from .calculator.base import DeductionPolicy
from .calculator.flat_rate import FlatRateDeductionPolicy
from .model import NewPayroll, Payroll
from .periods import find_overlaps
from .repository import PayrollRepository

logger = logging.getLogger(__name__)


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ScopeSelection:
    start: date
    end: date
    candidates: tuple[EmployeeHours, ...]
    selected_ids: tuple[int, ...]
    overlaps: dict[int, tuple[Payroll, ...]] = field(default_factory=dict)

    @property
    def candidate_ids(self) -> tuple[int, ...]:
        return tuple(c.profile_id for c in self.candidates)

    @property
    def can_advance(self) -> bool:
        return bool(self.selected_ids) and not self.overlaps


@dataclass(frozen=True)
class PreviewLine:
    profile_id: int
    working_hour_ids: tuple[int, ...]
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    hourly_rate: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal


@dataclass(frozen=True)
class PayrollPreview:
    start: date
    end: date
    lines: tuple[PreviewLine, ...]

    @property
    def total_gross(self) -> Decimal:
        return sum((l.gross_pay for l in self.lines), Decimal("0.00"))

    @property
    def total_net(self) -> Decimal:
        return sum((l.net_pay for l in self.lines), Decimal("0.00"))


@dataclass
class CommitEntry:
    line: PreviewLine
    status: CommitStatus = CommitStatus.PENDING
    payroll_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class CommitLog:
    """What the commit intended and how each employee's sub-commit ended."""

    start: date
    end: date
    bank_account_id: Optional[int]
    entries: list[CommitEntry]

    @property
    def done(self) -> list[CommitEntry]:
        return [e for e in self.entries if e.status == CommitStatus.DONE]

    @property
    def failed(self) -> list[CommitEntry]:
        return [e for e in self.entries if e.status == CommitStatus.FAILED]

    @property
    def stage(self) -> WizardStage:
        return WizardStage.COMMIT if self.failed else WizardStage.DONE


class PayrollGenerationWizard:
    def __init__(
        self,
        aggregator: WorkingHoursAggregator,
        payrolls: PayrollRepository,
        notifications: NotificationService,
        *,
        deduction_policy: Optional[DeductionPolicy] = None,
        overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
    ):
        self._aggregator = aggregator
        self._payrolls = payrolls
        self._notifications = notifications
        self._policy = deduction_policy or FlatRateDeductionPolicy()
        self._overtime_multiplier = Decimal(overtime_multiplier)

    # Stage 1
    def select_scope(
        self,
        *,
        start: date,
        end: date,
        profile_ids: Optional[Iterable[int]] = None,
    ) -> ScopeSelection:
        """Candidate pool for the window plus the overlap gate for the selection.

        ``profile_ids=None`` selects the whole pool; ids outside the pool are dropped.
        """

        start, end = require_date_range(start, end)
        candidates = tuple(self._aggregator.aggregate(start=start, end=end))
        pool = {c.profile_id for c in candidates}

        if profile_ids is None:
            selected = tuple(sorted(pool))
        else:
            requested = [require_positive_id(p, "Employee") for p in profile_ids]
            selected = tuple(p for p in dict.fromkeys(requested) if p in pool)

        return ScopeSelection(
            start=start,
            end=end,
            candidates=candidates,
            selected_ids=selected,
            overlaps=self._overlaps(selected, start, end),
        )

    def _overlaps(self, profile_ids: Iterable[int], start: date, end: date) -> dict[int, tuple[Payroll, ...]]:
        ids = list(profile_ids)
        if not ids:
            return {}
        found = find_overlaps(self._payrolls.list_for_profiles(ids), profile_ids=ids, start=start, end=end)
        return {pid: tuple(ps) for pid, ps in found.items()}

    # Stage 2
    def preview(self, scope: ScopeSelection) -> PayrollPreview:
        if not scope.selected_ids:
            raise ValidationError("Select at least one employee with unpaid hours")
        if scope.overlaps:
            raise PayrollOverlapError(
                "Some employees already have a payroll overlapping this period",
                profile_ids=sorted(scope.overlaps),
            )

        summaries = self._aggregator.aggregate(start=scope.start, end=scope.end, profile_ids=scope.selected_ids)
        lines = tuple(self.price(s) for s in summaries if s.total_hours > 0)
        return PayrollPreview(start=scope.start, end=scope.end, lines=lines)

    def price(self, hours: EmployeeHours) -> PreviewLine:
        rate = hours.avg_hourly_rate
        regular_pay = _money(hours.regular_hours * rate)
        overtime_pay = _money(hours.overtime_hours * rate * self._overtime_multiplier)
        gross = regular_pay + overtime_pay
        deductions = _money(self._policy.compute(gross))
        return PreviewLine(
            profile_id=hours.profile_id,
            working_hour_ids=hours.working_hour_ids,
            total_hours=hours.total_hours,
            regular_hours=hours.regular_hours,
            overtime_hours=hours.overtime_hours,
            hourly_rate=rate,
            regular_pay=regular_pay,
            overtime_pay=overtime_pay,
            gross_pay=gross,
            deductions=deductions,
            net_pay=gross - deductions,
        )

    def ensure_unchanged(self, preview: PayrollPreview, reviewed: Mapping[int, Iterable[int]]) -> None:
        """Refuse a commit when a fresh preview differs from the one the user reviewed.

        ``reviewed`` maps employee id to the working-hour ids shown for them.
        """

        fresh = {line.profile_id: sorted(line.working_hour_ids) for line in preview.lines}
        seen = {int(pid): sorted(int(w) for w in ids) for pid, ids in reviewed.items()}
        if fresh != seen:
            stale = sorted(pid for pid in fresh.keys() | seen.keys() if fresh.get(pid) != seen.get(pid))
            logger.warning("payroll preview for %s..%s is stale for employees %s", preview.start, preview.end, stale)
            raise BusinessRuleError("Preview is stale, re-run preview")

    # Stage 3
    def commit(self, preview: PayrollPreview, *, bank_account_id: Optional[int] = None) -> CommitLog:
        if not preview.lines:
            raise BusinessRuleError("No eligible hours to pay in this period")

        log = CommitLog(
            start=preview.start,
            end=preview.end,
            bank_account_id=bank_account_id,
            entries=[CommitEntry(line=line) for line in preview.lines],
        )
        return self._run(log, log.entries)

    def retry_failed(self, log: CommitLog) -> CommitLog:
        """Re-run only the employees whose sub-commit failed."""

        retry = log.failed
        for entry in retry:
            entry.status = CommitStatus.PENDING
            entry.error = None
        return self._run(log, retry)

    def _run(self, log: CommitLog, entries: list[CommitEntry]) -> CommitLog:
        # Overlap is re-checked right before writing: another session may have committed meanwhile.
        overlaps = self._overlaps([e.line.profile_id for e in entries], log.start, log.end)
        if overlaps:
            for e in entries:
                if e.line.profile_id in overlaps:
                    e.status = CommitStatus.FAILED
                    e.error = "overlapping payroll period"
            raise PayrollOverlapError(
                "Some employees already have a payroll overlapping this period",
                profile_ids=sorted(overlaps),
            )

        created: list[Payroll] = []
        for e in entries:
            line = e.line
            new = NewPayroll(
                profile_id=line.profile_id,
                pay_period_start=log.start,
                pay_period_end=log.end,
                total_hours=line.total_hours,
                hourly_rate=line.hourly_rate,
                gross_pay=line.gross_pay,
                deductions=line.deductions,
                net_pay=line.net_pay,
                overtime_pay=line.overtime_pay,
                status=PayrollStatus.PENDING,
                bank_account_id=log.bank_account_id,
            )
            try:
                e.payroll_id = self._payrolls.create_with_links(new, line.working_hour_ids)
            except StoreError as exc:
                e.status = CommitStatus.FAILED
                e.error = str(exc)
                logger.error("payroll commit failed for employee %s: %s", line.profile_id, exc)
                continue

            e.status = CommitStatus.DONE
            created.append(_as_payroll(e.payroll_id, new))

        self._notifications.notify_payrolls_created(created)
        logger.info(
            "payroll commit %s..%s: %d done, %d failed",
            log.start,
            log.end,
            len(log.done),
            len(log.failed),
        )
        return log


def _as_payroll(payroll_id: int, new: NewPayroll) -> Payroll:
    return Payroll(
        id=payroll_id,
        profile_id=new.profile_id,
        pay_period_start=new.pay_period_start,
        pay_period_end=new.pay_period_end,
        total_hours=new.total_hours,
        hourly_rate=new.hourly_rate,
        gross_pay=new.gross_pay,
        deductions=new.deductions,
        net_pay=new.net_pay,
        status=new.status,
        overtime_pay=new.overtime_pay,
        bank_account_id=new.bank_account_id,
    )
