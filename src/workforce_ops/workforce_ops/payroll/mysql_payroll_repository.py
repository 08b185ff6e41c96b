from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause
from .model import NewPayroll, Payroll
from .repository import PayrollRepository

_COLUMNS = """
    id, profile_id, pay_period_start, pay_period_end, total_hours, hourly_rate,
    gross_pay, deductions, net_pay, overtime_pay, bonus, tax, superannuation,
    other_deductions, status, bank_account_id, created_at
"""

_UPDATABLE = frozenset(
    {
        "pay_period_start",
        "pay_period_end",
        "total_hours",
        "hourly_rate",
        "gross_pay",
        "deductions",
        "net_pay",
        "overtime_pay",
        "bonus",
        "tax",
        "superannuation",
        "other_deductions",
        "bank_account_id",
    }
)


def _to_payroll(r: dict) -> Payroll:
    return Payroll(
        id=int(r["id"]),
        profile_id=int(r["profile_id"]),
        pay_period_start=r["pay_period_start"],
        pay_period_end=r["pay_period_end"],
        total_hours=as_decimal(r.get("total_hours")),
        hourly_rate=as_decimal(r.get("hourly_rate")),
        gross_pay=as_decimal(r.get("gross_pay")),
        deductions=as_decimal(r.get("deductions")),
        net_pay=as_decimal(r.get("net_pay")),
        overtime_pay=as_decimal(r.get("overtime_pay")),
        bonus=as_decimal(r.get("bonus")),
        tax=as_decimal(r.get("tax")),
        superannuation=as_decimal(r.get("superannuation")),
        other_deductions=as_decimal(r.get("other_deductions")),
        status=PayrollStatus(r["status"]),
        bank_account_id=int(r["bank_account_id"]) if r.get("bank_account_id") is not None else None,
        created_at=r.get("created_at"),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payroll WHERE id=%s", (int(payroll_id),))
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def list_for_profiles(self, profile_ids: Iterable[int]) -> Sequence[Payroll]:
        ids = [int(i) for i in profile_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll
                WHERE profile_id IN ({in_clause(ids)})
                ORDER BY pay_period_start DESC, id DESC
                """,
                tuple(ids),
            )
            return [_to_payroll(r) for r in fetchall(cur)]

    def list_recent(self, *, limit: int = 200) -> Sequence[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payroll ORDER BY pay_period_end DESC, id DESC LIMIT %s",
                (int(limit),),
            )
            return [_to_payroll(r) for r in fetchall(cur)]

    def create_with_links(self, payroll: NewPayroll, working_hour_ids: Sequence[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll(
                    profile_id, pay_period_start, pay_period_end, total_hours, hourly_rate,
                    gross_pay, deductions, net_pay, overtime_pay, status, bank_account_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    payroll.profile_id,
                    payroll.pay_period_start,
                    payroll.pay_period_end,
                    payroll.total_hours,
                    payroll.hourly_rate,
                    payroll.gross_pay,
                    payroll.deductions,
                    payroll.net_pay,
                    payroll.overtime_pay,
                    payroll.status.value,
                    payroll.bank_account_id,
                ),
            )
            payroll_id = int(cur.lastrowid)
            if working_hour_ids:
                # uq_pwh_working_hours rejects hours already linked elsewhere; the whole insert rolls back.
                cur.executemany(
                    "INSERT INTO payroll_working_hours(payroll_id, working_hours_id) VALUES(%s,%s)",
                    [(payroll_id, int(wid)) for wid in working_hour_ids],
                )
            return payroll_id

    def linked_working_hour_ids(self, working_hour_ids: Optional[Iterable[int]] = None) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            if working_hour_ids is None:
                cur.execute("SELECT working_hours_id FROM payroll_working_hours")
            else:
                ids = [int(i) for i in working_hour_ids]
                if not ids:
                    return set()
                cur.execute(
                    f"SELECT working_hours_id FROM payroll_working_hours WHERE working_hours_id IN ({in_clause(ids)})",
                    tuple(ids),
                )
            return {int(r["working_hours_id"]) for r in fetchall(cur)}

    def working_hour_ids_for(self, payroll_id: int) -> list[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT working_hours_id FROM payroll_working_hours WHERE payroll_id=%s ORDER BY working_hours_id",
                (int(payroll_id),),
            )
            return [int(r["working_hours_id"]) for r in fetchall(cur)]

    def update(self, payroll_id: int, changes: dict) -> bool:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        if not changes:
            return False

        cols = sorted(changes)
        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payroll SET {assignments}, updated_at=NOW() WHERE id=%s AND status<>'paid'",
                (*[changes[c] for c in cols], int(payroll_id)),
            )
            return cur.rowcount > 0

    def set_status(self, payroll_id: int, status: PayrollStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll SET status=%s, updated_at=NOW() WHERE id=%s",
                (status.value, int(payroll_id)),
            )
            return cur.rowcount > 0

    def mark_paid(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll SET status='paid', updated_at=NOW() WHERE id=%s AND status='approved'",
                (int(payroll_id),),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                UPDATE working_hours wh
                JOIN payroll_working_hours pwh ON pwh.working_hours_id = wh.id
                SET wh.status='paid'
                WHERE pwh.payroll_id=%s
                """,
                (int(payroll_id),),
            )
            return True

    def delete_with_links(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status FROM payroll WHERE id=%s FOR UPDATE", (int(payroll_id),))
            r = fetchone(cur)
            if not r or r["status"] == PayrollStatus.PAID.value:
                return False
            cur.execute("DELETE FROM payroll_working_hours WHERE payroll_id=%s", (int(payroll_id),))
            cur.execute("DELETE FROM payroll WHERE id=%s", (int(payroll_id),))
            return cur.rowcount > 0
