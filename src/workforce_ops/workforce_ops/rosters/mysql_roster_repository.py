from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import RosterStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import NewRosterEntry, RosterEntry
from .repository import RosterRepository

_COLUMNS = """
    id, profile_id, client_id, project_id, date, end_date, start_time, end_time,
    total_hours, status, name, expected_profiles, hourly_rate, is_locked, is_editable, notes
"""

_UPDATABLE = frozenset(
    {
        "client_id",
        "project_id",
        "date",
        "end_date",
        "start_time",
        "end_time",
        "total_hours",
        "status",
        "name",
        "expected_profiles",
        "hourly_rate",
        "notes",
    }
)


def _to_entry(r: dict) -> RosterEntry:
    return RosterEntry(
        id=int(r["id"]),
        profile_id=int(r["profile_id"]),
        client_id=int(r["client_id"]),
        project_id=int(r["project_id"]),
        date=r["date"],
        end_date=r.get("end_date"),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        total_hours=as_decimal(r.get("total_hours")),
        status=RosterStatus(r["status"]),
        name=r.get("name"),
        expected_profiles=int(r.get("expected_profiles") or 1),
        hourly_rate=as_decimal(r.get("hourly_rate"), default=None),
        is_locked=bool(r.get("is_locked")),
        is_editable=bool(r.get("is_editable", True)),
        notes=r.get("notes"),
    )


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, roster_id: int) -> Optional[RosterEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM rosters WHERE id=%s", (int(roster_id),))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def list_by_ids(self, roster_ids: Iterable[int]) -> Sequence[RosterEntry]:
        ids = [int(i) for i in roster_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM rosters WHERE id IN ({in_clause(ids)}) ORDER BY date, id", tuple(ids))
            return [_to_entry(r) for r in fetchall(cur)]

    def list_range(self, *, start: date, end: date, profile_id: Optional[int] = None) -> Sequence[RosterEntry]:
        clauses = ["date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if profile_id is not None:
            clauses.append("profile_id=%s")
            params.append(int(profile_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM rosters
                WHERE {' AND '.join(clauses)}
                ORDER BY date DESC, profile_id ASC
                """,
                tuple(params),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def insert_many(self, entries: Sequence[NewRosterEntry]) -> list[int]:
        ids: list[int] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for e in entries:
                cur.execute(
                    """
                    INSERT INTO rosters(
                        profile_id, client_id, project_id, date, end_date, start_time, end_time,
                        total_hours, status, name, expected_profiles, hourly_rate, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        e.profile_id,
                        e.client_id,
                        e.project_id,
                        e.date,
                        e.end_date,
                        e.start_time,
                        e.end_time,
                        e.total_hours,
                        e.status.value,
                        e.name,
                        e.expected_profiles,
                        e.hourly_rate,
                        e.notes,
                    ),
                )
                ids.append(int(cur.lastrowid))
        return ids

    def update(self, roster_id: int, changes: dict) -> bool:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        if not changes:
            return False

        cols = sorted(changes)
        values = [changes[c].value if isinstance(changes[c], RosterStatus) else changes[c] for c in cols]
        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            # The is_editable guard repeats the service-level check inside the store.
            cur.execute(
                f"UPDATE rosters SET {assignments} WHERE id=%s AND is_editable=1",
                (*values, int(roster_id)),
            )
            return cur.rowcount > 0

    def delete(self, roster_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM rosters WHERE id=%s AND is_editable=1", (int(roster_id),))
            return cur.rowcount > 0
