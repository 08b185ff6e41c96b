from __future__ import annotations

import csv
import io
import json
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError
from .model import Profile
from .repository import ProfileRepository

SORTABLE_COLUMNS = frozenset(
    {"created_at", "full_name", "email", "role", "employment_type", "hourly_rate", "salary", "start_date", "is_active"}
)

CSV_HEADERS = [
    "ID",
    "Full Name",
    "Email",
    "Phone",
    "Role",
    "Employment Type",
    "Hourly Rate",
    "Salary",
    "Is Active",
    "Start Date",
    "Created At",
]


@dataclass(frozen=True)
class ExportFile:
    content: bytes
    filename: str
    mimetype: str


def profile_to_dict(p: Profile) -> dict:
    return {
        "id": p.id,
        "full_name": p.full_name,
        "email": p.email,
        "phone": p.phone,
        "role": p.role,
        "employment_type": p.employment_type,
        "hourly_rate": float(p.hourly_rate),
        "salary": float(p.salary),
        "is_active": p.is_active,
        "start_date": p.start_date.isoformat() if p.start_date else None,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


class ProfileOperationsService:
    """Server-side pagination and export for the profiles table."""

    def __init__(self, profiles: ProfileRepository):
        self._profiles = profiles

    @staticmethod
    def _sort(sort_by: str, sort_order: str) -> tuple[str, bool]:
        sort_by = (sort_by or "created_at").strip()
        if sort_by not in SORTABLE_COLUMNS:
            raise ValidationError(f"Cannot sort by {sort_by!r}")
        order = (sort_order or "desc").strip().lower()
        if order not in {"asc", "desc"}:
            raise ValidationError("sortOrder must be 'asc' or 'desc'")
        return sort_by, order == "asc"

    def paginate(
        self,
        *,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        search: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        page = int(page)
        page_size = int(page_size)
        if page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")

        column, ascending = self._sort(sort_by, sort_order)
        result = self._profiles.search(
            search=(search or "").strip(),
            sort_by=column,
            ascending=ascending,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return {
            "data": [profile_to_dict(p) for p in result.rows],
            "pagination": {
                "page": page,
                "pageSize": page_size,
                "total": result.total,
                "totalPages": math.ceil(result.total / page_size),
            },
        }

    def export(
        self,
        *,
        fmt: str = "json",
        search: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
        today: Optional[date] = None,
    ) -> ExportFile:
        fmt = (fmt or "json").strip().lower()
        if fmt not in {"csv", "json"}:
            raise ValidationError("format must be 'csv' or 'json'")

        column, ascending = self._sort(sort_by, sort_order)
        result = self._profiles.search(search=(search or "").strip(), sort_by=column, ascending=ascending)
        stamp = (today or date.today()).isoformat()

        if fmt == "csv":
            return ExportFile(
                content=self._to_csv(result.rows).encode("utf-8"),
                filename=f"profiles-{stamp}.csv",
                mimetype="text/csv",
            )

        payload = json.dumps([profile_to_dict(p) for p in result.rows], indent=2)
        return ExportFile(
            content=payload.encode("utf-8"),
            filename=f"profiles-{stamp}.json",
            mimetype="application/json",
        )

    @staticmethod
    def _to_csv(rows: list[Profile]) -> str:
        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for p in rows:
            writer.writerow(
                [
                    p.id,
                    p.full_name or "",
                    p.email or "",
                    p.phone or "",
                    p.role,
                    p.employment_type or "",
                    p.hourly_rate or 0,
                    p.salary or 0,
                    "true" if p.is_active else "false",
                    p.start_date.isoformat() if p.start_date else "",
                    p.created_at.isoformat() if p.created_at else "",
                ]
            )
        return out.getvalue()
