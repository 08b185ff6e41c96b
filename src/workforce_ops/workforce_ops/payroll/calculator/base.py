from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal


class DeductionPolicy(ABC):
    """Deduction interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def compute(self, gross: Decimal) -> Decimal:
        raise NotImplementedError
