from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import BankAccount
from .repository import BankAccountRepository

_COLUMNS = "id, bank_name, account_name, account_number, bsb_code, is_primary, profile_id"


def _to_account(r: dict) -> BankAccount:
    return BankAccount(
        id=int(r["id"]),
        bank_name=r["bank_name"],
        account_name=r["account_name"],
        account_number=r["account_number"],
        bsb_code=r.get("bsb_code"),
        is_primary=bool(r.get("is_primary")),
        profile_id=int(r["profile_id"]) if r.get("profile_id") is not None else None,
    )


class MySQLBankAccountRepository(BankAccountRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, account_id: int) -> Optional[BankAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM bank_accounts WHERE id=%s", (int(account_id),))
            r = fetchone(cur)
            return _to_account(r) if r else None

    def list_company_accounts(self) -> Sequence[BankAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM bank_accounts WHERE profile_id IS NULL ORDER BY is_primary DESC, id ASC"
            )
            return [_to_account(r) for r in fetchall(cur)]
