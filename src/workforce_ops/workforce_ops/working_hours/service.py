from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import hours_between
from ..common.locking import ensure_editable
from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_LIST_LIMIT, OVERTIME_MULTIPLIER
from ..core.enums import RosterStatus, WorkingHourStatus
from ..core.exceptions import BusinessRuleError, NotFoundError, ValidationError
from ..profiles.repository import ProfileRepository
from ..rosters.repository import RosterRepository
from .model import NewWorkingHour, WorkingHour, compute_payable
from .repository import WorkingHoursRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "client_id",
        "project_id",
        "date",
        "start_time",
        "end_time",
        "actual_hours",
        "overtime_hours",
        "hourly_rate",
        "sign_in_time",
        "sign_out_time",
        "notes",
    }
)


@dataclass(frozen=True)
class WorkingHourInput:
    profile_id: int
    client_id: int
    project_id: int
    date: date
    start_time: time
    end_time: time
    overtime_hours: Decimal = Decimal("0")
    hourly_rate: Optional[Decimal] = None
    actual_hours: Optional[Decimal] = None
    sign_in_time: Optional[datetime] = None
    sign_out_time: Optional[datetime] = None
    notes: Optional[str] = None


class WorkingHoursService:
    def __init__(
        self,
        working_hours: WorkingHoursRepository,
        rosters: RosterRepository,
        profiles: ProfileRepository,
        *,
        overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
    ):
        self._hours = working_hours
        self._rosters = rosters
        self._profiles = profiles
        self._overtime_multiplier = Decimal(overtime_multiplier)

    def _base_rate(self, profile_id: int) -> Decimal:
        profile = self._profiles.get_by_id(profile_id)
        if not profile:
            raise ValidationError("Employee does not exist")
        return profile.hourly_rate

    @staticmethod
    def _check_overtime(total: Decimal, overtime: Decimal) -> None:
        if overtime < 0:
            raise ValidationError("Overtime hours cannot be negative")
        if overtime > total:
            raise ValidationError("Overtime hours cannot exceed total hours")

    def _payable(self, total: Decimal, overtime: Decimal, rate: Decimal) -> Decimal:
        return compute_payable(total, overtime, rate, overtime_multiplier=self._overtime_multiplier)

    def create(self, data: WorkingHourInput) -> int:
        profile_id = require_positive_id(data.profile_id, "Employee")
        client_id = require_positive_id(data.client_id, "Client")
        project_id = require_positive_id(data.project_id, "Project")
        if data.hourly_rate is not None and data.hourly_rate < 0:
            raise ValidationError("Hourly rate cannot be negative")
        if data.sign_in_time and data.sign_out_time and data.sign_out_time < data.sign_in_time:
            raise ValidationError("Sign-out cannot be before sign-in")

        total = hours_between(data.start_time, data.end_time)
        overtime = data.overtime_hours or Decimal("0")
        self._check_overtime(total, overtime)

        rate = data.hourly_rate if data.hourly_rate is not None else self._base_rate(profile_id)
        row = NewWorkingHour(
            profile_id=profile_id,
            client_id=client_id,
            project_id=project_id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            total_hours=total,
            overtime_hours=overtime,
            hourly_rate=rate,
            payable_amount=self._payable(total, overtime, rate),
            actual_hours=data.actual_hours,
            sign_in_time=data.sign_in_time,
            sign_out_time=data.sign_out_time,
            notes=(data.notes or "").strip() or None,
        )
        return self._hours.insert_many([row])[0]

    def derive_from_rosters(self, roster_ids: Iterable[int]) -> list[int]:
        """Bulk-create pending working hours from roster rows.

        Cancelled rosters and rosters that already have hours are skipped.
        """

        ids = list(dict.fromkeys(require_positive_id(r, "Roster") for r in roster_ids or []))
        if not ids:
            return []

        rosters = [r for r in self._rosters.list_by_ids(ids) if r.status != RosterStatus.CANCELLED]
        done = self._hours.roster_ids_with_hours(r.id for r in rosters)
        todo = [r for r in rosters if r.id not in done]
        if not todo:
            return []

        base_rates: dict[int, Decimal] = {}
        rows: list[NewWorkingHour] = []
        for r in todo:
            rate = r.hourly_rate
            if rate is None:
                if r.profile_id not in base_rates:
                    base_rates[r.profile_id] = self._base_rate(r.profile_id)
                rate = base_rates[r.profile_id]
            rows.append(
                NewWorkingHour(
                    profile_id=r.profile_id,
                    client_id=r.client_id,
                    project_id=r.project_id,
                    roster_id=r.id,
                    date=r.date,
                    start_time=r.start_time,
                    end_time=r.end_time,
                    total_hours=r.total_hours,
                    overtime_hours=Decimal("0"),
                    hourly_rate=rate,
                    payable_amount=self._payable(r.total_hours, Decimal("0"), rate),
                    notes=r.notes,
                )
            )

        new_ids = self._hours.insert_many(rows)
        logger.info("derived %d working hours from %d rosters", len(new_ids), len(ids))
        return new_ids

    def list(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        profile_id: Optional[int] = None,
        status: Optional[WorkingHourStatus] = None,
    ) -> Sequence[WorkingHour]:
        if start and end and end < start:
            raise ValidationError("End date must be on or after start date")
        return self._hours.list_filtered(
            start=start,
            end=end,
            profile_ids=[profile_id] if profile_id else None,
            status=status,
            limit=DEFAULT_LIST_LIMIT,
        )

    def _get(self, working_hour_id: int) -> WorkingHour:
        wh = self._hours.get_by_id(require_positive_id(working_hour_id, "Working hour"))
        if not wh:
            raise NotFoundError("Working hour not found")
        return wh

    def update(self, working_hour_id: int, changes: dict) -> WorkingHour:
        wh = self._get(working_hour_id)
        ensure_editable(wh, action="edit")

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        patch = dict(changes)
        if "date" in patch and not isinstance(patch["date"], date):
            raise ValidationError("date is required (YYYY-MM-DD)")
        for key in ("client_id", "project_id"):
            if key in patch:
                patch[key] = require_positive_id(patch[key], key.replace("_id", "").title())
        if patch.get("hourly_rate") is not None and patch["hourly_rate"] < 0:
            raise ValidationError("Hourly rate cannot be negative")

        total = hours_between(patch.get("start_time", wh.start_time), patch.get("end_time", wh.end_time))
        overtime = patch.get("overtime_hours", wh.overtime_hours) or Decimal("0")
        self._check_overtime(total, overtime)

        rate = patch["hourly_rate"] if "hourly_rate" in patch else wh.hourly_rate
        if rate is None:
            rate = self._base_rate(wh.profile_id)

        patch["total_hours"] = total
        patch["overtime_hours"] = overtime
        patch["hourly_rate"] = rate
        patch["payable_amount"] = self._payable(total, overtime, rate)

        if not self._hours.update(wh.id, patch):
            raise ValidationError("Working hour update failed")
        return self._get(wh.id)

    def delete(self, working_hour_id: int) -> None:
        wh = self._get(working_hour_id)
        ensure_editable(wh, action="delete")
        if not self._hours.delete(wh.id):
            raise ValidationError("Working hour delete failed")

    def approve(self, working_hour_id: int) -> None:
        """pending -> approved; also locks the roster row it was derived from."""

        wh = self._get(working_hour_id)
        if wh.status != WorkingHourStatus.PENDING:
            raise BusinessRuleError(f"Only pending hours can be approved (current: {wh.status.value})")

        if not self._hours.approve(wh.id):
            raise BusinessRuleError("Working hour was already approved or rejected")
        logger.info("working hour %s approved (roster=%s)", wh.id, wh.roster_id)

    def reject(self, working_hour_id: int) -> None:
        wh = self._get(working_hour_id)
        if wh.status != WorkingHourStatus.PENDING:
            raise BusinessRuleError(f"Only pending hours can be rejected (current: {wh.status.value})")
        if not self._hours.set_status(wh.id, WorkingHourStatus.REJECTED, expected=WorkingHourStatus.PENDING):
            raise BusinessRuleError("Working hour was already approved or rejected")
