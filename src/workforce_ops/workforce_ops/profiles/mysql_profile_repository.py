from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause
from .model import Profile, ProfilePage
from .repository import ProfileRepository

_COLUMNS = """
    id, full_name, email, phone, role, employment_type, hourly_rate, salary,
    is_active, start_date, created_at
"""


def _to_profile(r: dict) -> Profile:
    return Profile(
        id=int(r["id"]),
        full_name=r["full_name"],
        email=r.get("email"),
        phone=r.get("phone"),
        role=r.get("role") or "employee",
        employment_type=r.get("employment_type"),
        hourly_rate=as_decimal(r.get("hourly_rate")),
        salary=as_decimal(r.get("salary")),
        is_active=bool(r.get("is_active", True)),
        start_date=r.get("start_date"),
        created_at=r.get("created_at"),
    )


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, profile_id: int) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE id=%s", (int(profile_id),))
            r = fetchone(cur)
            return _to_profile(r) if r else None

    def list_by_ids(self, profile_ids: Iterable[int]) -> Sequence[Profile]:
        ids = [int(i) for i in profile_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM profiles WHERE id IN ({in_clause(ids)}) ORDER BY full_name",
                tuple(ids),
            )
            return [_to_profile(r) for r in fetchall(cur)]

    def search(
        self,
        *,
        search: str,
        sort_by: str,
        ascending: bool,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ProfilePage:
        # sort_by is whitelisted by the service; never interpolate raw input here.
        clauses: list[str] = []
        params: list[object] = []
        if search:
            like = f"%{search.lower()}%"
            clauses.append("(LOWER(full_name) LIKE %s OR LOWER(email) LIKE %s OR LOWER(role) LIKE %s)")
            params.extend([like, like, like])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        order = f"ORDER BY {sort_by} {'ASC' if ascending else 'DESC'}, id ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM profiles {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)

            sql = f"SELECT {_COLUMNS} FROM profiles {where} {order}"
            page_params = list(params)
            if limit is not None:
                sql += " LIMIT %s OFFSET %s"
                page_params.extend([int(limit), int(offset or 0)])
            cur.execute(sql, tuple(page_params))
            rows = [_to_profile(r) for r in fetchall(cur)]

        return ProfilePage(rows=rows, total=total)
