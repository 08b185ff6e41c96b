from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Profile:
    """Thực thể miền (domain): Employee profile.

    Plain data object; no DB access here.
    """

    id: int
    full_name: str
    email: Optional[str]
    phone: Optional[str]
    role: str
    employment_type: Optional[str]
    hourly_rate: Decimal
    salary: Decimal
    is_active: bool
    start_date: Optional[date]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class ProfilePage:
    rows: list[Profile]
    total: int
