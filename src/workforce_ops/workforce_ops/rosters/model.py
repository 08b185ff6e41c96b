from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..core.enums import RosterStatus


@dataclass(frozen=True)
class RosterEntry:
    """Thực thể miền (domain): one employee's shift on one day."""

    id: int
    profile_id: int
    client_id: int
    project_id: int
    date: date
    start_time: time
    end_time: time
    total_hours: Decimal
    status: RosterStatus = RosterStatus.PENDING
    end_date: Optional[date] = None
    name: Optional[str] = None
    expected_profiles: int = 1
    hourly_rate: Optional[Decimal] = None
    is_locked: bool = False
    is_editable: bool = True
    notes: Optional[str] = None


@dataclass(frozen=True)
class NewRosterEntry:
    """Insert payload produced by the generator (no id yet)."""

    profile_id: int
    client_id: int
    project_id: int
    date: date
    start_time: time
    end_time: time
    total_hours: Decimal
    status: RosterStatus = RosterStatus.PENDING
    end_date: Optional[date] = None
    name: Optional[str] = None
    expected_profiles: int = 1
    hourly_rate: Optional[Decimal] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ShiftTemplate:
    profile_ids: tuple[int, ...]
    client_id: int
    project_id: int
    start_date: date
    start_time: time
    end_time: time
    end_date: Optional[date] = None
    hourly_rate: Optional[Decimal] = None
    expected_profiles: int = 1
    name: Optional[str] = None
    notes: Optional[str] = None
