from __future__ import annotations

from typing import Optional, Sequence

from ..core.exceptions import ValidationError
from .model import BankAccount
from .repository import BankAccountRepository


class BankAccountService:
    def __init__(self, accounts: BankAccountRepository):
        self._accounts = accounts

    def list_company_accounts(self) -> Sequence[BankAccount]:
        return self._accounts.list_company_accounts()

    def resolve_payout_account(self, account_id: Optional[int]) -> Optional[int]:
        """Explicit company account, else the primary one, else none."""

        if account_id:
            account = self._accounts.get_by_id(int(account_id))
            if not account:
                raise ValidationError("Bank account does not exist")
            if account.profile_id is not None:
                raise ValidationError("Payroll must be paid from a company account")
            return account.id

        primary = next((a for a in self._accounts.list_company_accounts() if a.is_primary), None)
        return primary.id if primary else None
