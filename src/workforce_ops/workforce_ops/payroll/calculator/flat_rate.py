from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ...core.constants import DEFAULT_DEDUCTION_RATE, MONEY_QUANTUM
from .base import DeductionPolicy


class FlatRateDeductionPolicy(DeductionPolicy):
    """Illustrative rule: a flat percentage of gross, rounded to cents."""

    def __init__(self, rate: Decimal = DEFAULT_DEDUCTION_RATE):
        rate = Decimal(rate)
        if not Decimal("0") <= rate <= Decimal("1"):
            raise ValueError(f"Deduction rate must be within [0, 1], got {rate}")
        self.rate = rate

    def compute(self, gross: Decimal) -> Decimal:
        if gross <= 0:
            return Decimal("0.00")
        return (gross * self.rate).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
