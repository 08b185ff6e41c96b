from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from ..core.exceptions import ValidationError


def require_positive_id(value: Any, field_name: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if v <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return v


def require_date_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    if start is None or end is None:
        raise ValidationError("Start and end dates are required")
    if end < start:
        raise ValidationError("End date must be on or after start date")
    return start, end


def require_selection(ids: Iterable[Any], field_name: str) -> list[int]:
    if ids is not None and not isinstance(ids, (list, tuple, set)):
        raise ValidationError(f"Selection of {field_name} must be a list")
    out = [require_positive_id(v, field_name) for v in ids or []]
    if not out:
        raise ValidationError(f"Select at least one {field_name}")
    # keep first-seen order, drop duplicates
    return list(dict.fromkeys(out))


def to_decimal(value: Any, field_name: str, *, allow_negative: bool = False) -> Decimal:
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if d < 0 and not allow_negative:
        raise ValidationError(f"{field_name} cannot be negative")
    return d


def to_optional_decimal(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value, field_name)
