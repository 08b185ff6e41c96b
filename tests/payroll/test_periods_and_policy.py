from datetime import date
from decimal import Decimal

import pytest

from src.workforce_ops.workforce_ops.core.enums import PayrollStatus
from src.workforce_ops.workforce_ops.payroll.calculator.flat_rate import FlatRateDeductionPolicy
from src.workforce_ops.workforce_ops.payroll.model import Payroll
from src.workforce_ops.workforce_ops.payroll.periods import find_overlaps, overlaps


def _payroll(pid, profile_id, start, end, status=PayrollStatus.PENDING):
    zero = Decimal("0")
    return Payroll(
        id=pid,
        profile_id=profile_id,
        pay_period_start=start,
        pay_period_end=end,
        total_hours=zero,
        hourly_rate=zero,
        gross_pay=zero,
        deductions=zero,
        net_pay=zero,
        status=status,
    )


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((1, 5), (6, 9), False),
        ((1, 5), (5, 9), True),  # shared boundary day
        ((5, 9), (1, 5), True),
        ((1, 9), (3, 4), True),
        ((6, 9), (1, 5), False),
    ],
)
def test_overlaps_is_closed_interval(a, b, expected):
    d = lambda n: date(2024, 1, n)
    assert overlaps(d(a[0]), d(a[1]), d(b[0]), d(b[1])) is expected


def test_find_overlaps_groups_by_employee_and_excludes_self():
    existing = [
        _payroll(1, 10, date(2024, 1, 1), date(2024, 1, 7)),
        _payroll(2, 11, date(2024, 1, 8), date(2024, 1, 14)),
        _payroll(3, 12, date(2024, 1, 3), date(2024, 1, 4)),
    ]

    found = find_overlaps(existing, profile_ids=[10, 11], start=date(2024, 1, 7), end=date(2024, 1, 10))
    assert {k: [p.id for p in v] for k, v in found.items()} == {10: [1], 11: [2]}

    assert find_overlaps(existing, profile_ids=[10], start=date(2024, 1, 1), end=date(2024, 1, 7), exclude_payroll_id=1) == {}


def test_flat_rate_deduction_rounds_half_up():
    policy = FlatRateDeductionPolicy()
    assert policy.compute(Decimal("320.00")) == Decimal("32.00")
    assert policy.compute(Decimal("0.05")) == Decimal("0.01")
    assert policy.compute(Decimal("0")) == Decimal("0.00")


def test_flat_rate_is_injectable():
    assert FlatRateDeductionPolicy(Decimal("0.25")).compute(Decimal("100")) == Decimal("25.00")
    with pytest.raises(ValueError):
        FlatRateDeductionPolicy(Decimal("1.5"))
