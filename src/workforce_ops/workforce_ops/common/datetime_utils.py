from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterator, Optional

from ..core.constants import HOURS_QUANTUM
from ..core.exceptions import ValidationError

# Anchor day for time-of-day arithmetic; keeps durations free of DST/rollover effects.
_ANCHOR = date(2000, 1, 1)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_time(value: str) -> time:
    """Parse HH:MM or HH:MM:SS."""
    v = str(value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time (HH:MM): {value!r}")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    v = str(value or "").strip()
    if not v:
        return None
    try:
        return parse_iso_date(v)
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def hours_between(start: time, end: time) -> Decimal:
    """Hours from start to end on the same day, clamped to >= 0.

    An end before the start (overnight shift) yields 0.
    """

    delta = datetime.combine(_ANCHOR, end) - datetime.combine(_ANCHOR, start)
    seconds = max(int(delta.total_seconds()), 0)
    return (Decimal(seconds) / Decimal(3600)).quantize(HOURS_QUANTUM)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Inclusive day range."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)
