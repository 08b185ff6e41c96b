from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import hours_between, iter_days
from ..common.validators import require_date_range, require_positive_id
from ..core.enums import RosterStatus
from ..core.exceptions import ValidationError
from .model import NewRosterEntry, ShiftTemplate


class RosterGenerator:
    """Expand a shift template into one roster row per employee per day.

    Rows carry no end_date: a multi-day template becomes D single-day rows.
    A template without employees expands to nothing.
    """

    def expand(self, template: ShiftTemplate) -> list[NewRosterEntry]:
        if not template.profile_ids:
            return []

        client_id = require_positive_id(template.client_id, "Client")
        project_id = require_positive_id(template.project_id, "Project")
        start, end = require_date_range(template.start_date, template.end_date or template.start_date)
        if int(template.expected_profiles) < 1:
            raise ValidationError("Expected headcount must be at least 1")
        rate = self._rate(template.hourly_rate)

        total_hours = hours_between(template.start_time, template.end_time)
        name = (template.name or "").strip() or None
        notes = (template.notes or "").strip() or None
        profile_ids = list(dict.fromkeys(require_positive_id(p, "Employee") for p in template.profile_ids))

        return [
            NewRosterEntry(
                profile_id=profile_id,
                client_id=client_id,
                project_id=project_id,
                date=day,
                start_time=template.start_time,
                end_time=template.end_time,
                total_hours=total_hours,
                status=RosterStatus.PENDING,
                name=name,
                expected_profiles=int(template.expected_profiles),
                hourly_rate=rate,
                notes=notes,
            )
            for profile_id in profile_ids
            for day in iter_days(start, end)
        ]

    @staticmethod
    def _rate(value: Optional[Decimal]) -> Optional[Decimal]:
        if value is None:
            return None
        if value < 0:
            raise ValidationError("Hourly rate cannot be negative")
        return value
