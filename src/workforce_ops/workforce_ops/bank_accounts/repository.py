from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import BankAccount


class BankAccountRepository(Protocol):
    def get_by_id(self, account_id: int) -> Optional[BankAccount]:
        raise NotImplementedError

    def list_company_accounts(self) -> Sequence[BankAccount]:
        """Accounts not tied to a profile, primary first."""

        raise NotImplementedError
