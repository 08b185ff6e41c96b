from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import WorkingHourStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import NewWorkingHour, WorkingHour
from .repository import WorkingHoursRepository

_COLUMNS = """
    id, profile_id, client_id, project_id, roster_id, date, start_time, end_time,
    total_hours, actual_hours, overtime_hours, hourly_rate, payable_amount,
    sign_in_time, sign_out_time, status, notes
"""

_UPDATABLE = frozenset(
    {
        "client_id",
        "project_id",
        "date",
        "start_time",
        "end_time",
        "total_hours",
        "actual_hours",
        "overtime_hours",
        "hourly_rate",
        "payable_amount",
        "sign_in_time",
        "sign_out_time",
        "notes",
    }
)


def _to_working_hour(r: dict) -> WorkingHour:
    return WorkingHour(
        id=int(r["id"]),
        profile_id=int(r["profile_id"]),
        client_id=int(r["client_id"]),
        project_id=int(r["project_id"]),
        roster_id=int(r["roster_id"]) if r.get("roster_id") is not None else None,
        date=r["date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        total_hours=as_decimal(r.get("total_hours")),
        actual_hours=as_decimal(r.get("actual_hours"), default=None),
        overtime_hours=as_decimal(r.get("overtime_hours")),
        hourly_rate=as_decimal(r.get("hourly_rate"), default=None),
        payable_amount=as_decimal(r.get("payable_amount")),
        sign_in_time=r.get("sign_in_time"),
        sign_out_time=r.get("sign_out_time"),
        status=WorkingHourStatus(r["status"]),
        notes=r.get("notes"),
    )


class MySQLWorkingHoursRepository(WorkingHoursRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, working_hour_id: int) -> Optional[WorkingHour]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM working_hours WHERE id=%s", (int(working_hour_id),))
            r = fetchone(cur)
            return _to_working_hour(r) if r else None

    def list_by_ids(self, working_hour_ids: Iterable[int]) -> Sequence[WorkingHour]:
        ids = [int(i) for i in working_hour_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM working_hours WHERE id IN ({in_clause(ids)}) ORDER BY date, id",
                tuple(ids),
            )
            return [_to_working_hour(r) for r in fetchall(cur)]

    def list_filtered(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        profile_ids: Optional[Iterable[int]] = None,
        status: Optional[WorkingHourStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[WorkingHour]:
        clauses: list[str] = []
        params: list[object] = []
        if start is not None:
            clauses.append("date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("date <= %s")
            params.append(end)
        if profile_ids is not None:
            ids = [int(i) for i in profile_ids]
            if not ids:
                return []
            clauses.append(f"profile_id IN ({in_clause(ids)})")
            params.extend(ids)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        sql = f"SELECT {_COLUMNS} FROM working_hours"
        if clauses:
            sql += f" WHERE {' AND '.join(clauses)}"
        sql += " ORDER BY date DESC, id DESC"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_working_hour(r) for r in fetchall(cur)]

    def roster_ids_with_hours(self, roster_ids: Iterable[int]) -> set[int]:
        ids = [int(i) for i in roster_ids]
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT roster_id FROM working_hours WHERE roster_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            return {int(r["roster_id"]) for r in fetchall(cur)}

    def insert_many(self, rows: Sequence[NewWorkingHour]) -> list[int]:
        ids: list[int] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for w in rows:
                cur.execute(
                    """
                    INSERT INTO working_hours(
                        profile_id, client_id, project_id, roster_id, date, start_time, end_time,
                        total_hours, actual_hours, overtime_hours, hourly_rate, payable_amount,
                        sign_in_time, sign_out_time, status, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        w.profile_id,
                        w.client_id,
                        w.project_id,
                        w.roster_id,
                        w.date,
                        w.start_time,
                        w.end_time,
                        w.total_hours,
                        w.actual_hours,
                        w.overtime_hours,
                        w.hourly_rate,
                        w.payable_amount,
                        w.sign_in_time,
                        w.sign_out_time,
                        w.status.value,
                        w.notes,
                    ),
                )
                ids.append(int(cur.lastrowid))
        return ids

    def update(self, working_hour_id: int, changes: dict) -> bool:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        if not changes:
            return False

        cols = sorted(changes)
        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE working_hours SET {assignments} WHERE id=%s AND status IN ('pending','rejected')",
                (*[changes[c] for c in cols], int(working_hour_id)),
            )
            return cur.rowcount > 0

    def set_status(
        self,
        working_hour_id: int,
        status: WorkingHourStatus,
        *,
        expected: Optional[WorkingHourStatus] = None,
    ) -> bool:
        sql = "UPDATE working_hours SET status=%s WHERE id=%s"
        params: list[object] = [status.value, int(working_hour_id)]
        if expected is not None:
            sql += " AND status=%s"
            params.append(expected.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return cur.rowcount > 0

    def approve(self, working_hour_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE working_hours SET status='approved' WHERE id=%s AND status='pending'",
                (int(working_hour_id),),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                UPDATE rosters r JOIN working_hours w ON w.roster_id = r.id
                SET r.is_editable=0, r.is_locked=1
                WHERE w.id=%s
                """,
                (int(working_hour_id),),
            )
            return True

    def delete(self, working_hour_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM working_hours WHERE id=%s AND status IN ('pending','rejected')",
                (int(working_hour_id),),
            )
            return cur.rowcount > 0
