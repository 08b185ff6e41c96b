from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from .model import Payroll


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Closed-interval intersection; touching endpoints count as overlapping."""
    return a_start <= b_end and b_start <= a_end


def find_overlaps(
    payrolls: Iterable[Payroll],
    *,
    profile_ids: Iterable[int],
    start: date,
    end: date,
    exclude_payroll_id: Optional[int] = None,
) -> dict[int, list[Payroll]]:
    """Existing payrolls per employee whose period intersects [start, end]."""

    wanted = set(profile_ids)
    found: dict[int, list[Payroll]] = {}
    for p in payrolls:
        if p.profile_id not in wanted or p.id == exclude_payroll_id:
            continue
        if overlaps(start, end, p.pay_period_start, p.pay_period_end):
            found.setdefault(p.profile_id, []).append(p)
    return found
