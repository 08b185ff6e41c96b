from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BankAccount:
    id: int
    bank_name: str
    account_name: str
    account_number: str
    bsb_code: Optional[str] = None
    is_primary: bool = False
    profile_id: Optional[int] = None
