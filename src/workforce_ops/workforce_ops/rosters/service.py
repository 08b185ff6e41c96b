from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import hours_between
from ..common.locking import ensure_editable
from ..common.validators import require_date_range, require_positive_id
from ..core.enums import RosterStatus
from ..core.exceptions import NotFoundError, ValidationError
from .generator import RosterGenerator
from .model import RosterEntry, ShiftTemplate
from .repository import RosterRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"client_id", "project_id", "date", "start_time", "end_time", "status", "name", "expected_profiles", "hourly_rate", "notes"}
)


class RosterService:
    def __init__(self, rosters: RosterRepository, *, generator: Optional[RosterGenerator] = None):
        self._rosters = rosters
        self._generator = generator or RosterGenerator()

    def generate(self, template: ShiftTemplate) -> list[int]:
        """Create roster rows for every employee/day of the template.

        Returns the new ids; an empty employee selection inserts nothing.
        """

        entries = self._generator.expand(template)
        if not entries:
            return []

        ids = self._rosters.insert_many(entries)
        logger.info(
            "generated %d roster entries for %d employees (%s..%s)",
            len(ids),
            len(set(e.profile_id for e in entries)),
            template.start_date,
            template.end_date or template.start_date,
        )
        return ids

    def list_range(self, *, start: date, end: date, profile_id: Optional[int] = None) -> Sequence[RosterEntry]:
        start, end = require_date_range(start, end)
        return self._rosters.list_range(start=start, end=end, profile_id=profile_id)

    def _get(self, roster_id: int) -> RosterEntry:
        entry = self._rosters.get_by_id(require_positive_id(roster_id, "Roster"))
        if not entry:
            raise NotFoundError("Roster entry not found")
        return entry

    def update(self, roster_id: int, changes: dict) -> RosterEntry:
        entry = self._get(roster_id)
        ensure_editable(entry, action="edit")

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        patch = dict(changes)
        if "status" in patch:
            try:
                patch["status"] = RosterStatus(patch["status"])
            except ValueError:
                raise ValidationError(f"Unknown status: {patch['status']}")
        if "expected_profiles" in patch:
            try:
                headcount = int(patch["expected_profiles"])
            except (TypeError, ValueError):
                raise ValidationError("Expected headcount must be a whole number")
            if headcount < 1:
                raise ValidationError("Expected headcount must be at least 1")
            patch["expected_profiles"] = headcount
        if "date" in patch and not isinstance(patch["date"], date):
            raise ValidationError("date is required (YYYY-MM-DD)")
        if patch.get("hourly_rate") is not None and patch["hourly_rate"] < 0:
            raise ValidationError("Hourly rate cannot be negative")
        for key in ("client_id", "project_id"):
            if key in patch:
                patch[key] = require_positive_id(patch[key], key.replace("_id", "").title())

        if "start_time" in patch or "end_time" in patch:
            patch["total_hours"] = hours_between(
                patch.get("start_time", entry.start_time),
                patch.get("end_time", entry.end_time),
            )

        if patch and not self._rosters.update(entry.id, patch):
            raise ValidationError("Roster update failed")
        return self._get(entry.id)

    def delete(self, roster_id: int) -> None:
        entry = self._get(roster_id)
        ensure_editable(entry, action="delete")
        if not self._rosters.delete(entry.id):
            raise ValidationError("Roster delete failed")
