from datetime import date, time
from decimal import Decimal

import pytest

from src.workforce_ops.workforce_ops.core.enums import PayrollStatus, WorkingHourStatus
from src.workforce_ops.workforce_ops.core.exceptions import (
    BusinessRuleError,
    PayrollOverlapError,
    ValidationError,
)
from src.workforce_ops.workforce_ops.payroll.service import apply_edit


def _payroll(repo, **overrides):
    data = dict(
        profile_id=1,
        pay_period_start=date(2024, 1, 1),
        pay_period_end=date(2024, 1, 7),
        total_hours=Decimal("10"),
        hourly_rate=Decimal("20"),
        gross_pay=Decimal("200.00"),
        deductions=Decimal("20.00"),
        net_pay=Decimal("180.00"),
    )
    data.update(overrides)
    return repo.add(**data)


def _approved(repo, profile_id, day, hours="8", rate="20"):
    return repo.add(
        profile_id=profile_id,
        date=date(2024, 1, day),
        start_time=time(9, 0),
        end_time=time(17, 0),
        total_hours=Decimal(hours),
        hourly_rate=Decimal(rate),
        status=WorkingHourStatus.APPROVED,
    )


def test_apply_edit_rate_then_deductions(payrolls_repo):
    p = _payroll(payrolls_repo)

    p = apply_edit(p, "hourly_rate", "25")
    assert p.gross_pay == Decimal("250.00")
    assert p.net_pay == Decimal("230.00")

    p = apply_edit(p, "deductions", "25")
    assert p.net_pay == Decimal("225.00")


def test_apply_edit_gross_only_recomputes_net(payrolls_repo):
    p = apply_edit(_payroll(payrolls_repo), "gross_pay", "300")
    assert p.gross_pay == Decimal("300")
    assert p.net_pay == Decimal("280.00")
    assert p.hourly_rate == Decimal("20")


def test_apply_edit_rejects_unknown_field_and_bad_number(payrolls_repo):
    p = _payroll(payrolls_repo)
    with pytest.raises(ValidationError):
        apply_edit(p, "status", "paid")
    with pytest.raises(ValidationError):
        apply_edit(p, "hourly_rate", "abc")
    with pytest.raises(ValidationError):
        apply_edit(p, "bank_account_id", "abc")
    with pytest.raises(ValidationError):
        apply_edit(p, "pay_period_start", None)
    assert apply_edit(p, "bank_account_id", "2").bank_account_id == 2
    assert apply_edit(p, "bank_account_id", None).bank_account_id is None


def test_update_persists_recomputed_amounts(container, payrolls_repo):
    p = _payroll(payrolls_repo)

    updated = container.payroll_service.update(p.id, [("hourly_rate", "25"), ("deductions", "25")])

    assert (updated.gross_pay, updated.deductions, updated.net_pay) == (
        Decimal("250.00"),
        Decimal("25"),
        Decimal("225.00"),
    )


def test_update_rejects_period_overlapping_other_payroll(container, payrolls_repo):
    p = _payroll(payrolls_repo)
    _payroll(payrolls_repo, pay_period_start=date(2024, 1, 8), pay_period_end=date(2024, 1, 14))

    with pytest.raises(PayrollOverlapError):
        container.payroll_service.update(p.id, [("pay_period_end", date(2024, 1, 8))])
    with pytest.raises(ValidationError):
        container.payroll_service.update(p.id, [("pay_period_end", date(2023, 12, 31))])

    assert payrolls_repo.get_by_id(p.id).pay_period_end == date(2024, 1, 7)


def test_status_transitions_and_paid_is_final(container, payrolls_repo, hours_repo):
    row = _approved(hours_repo, 1, 2)
    p = _payroll(payrolls_repo)
    payrolls_repo.links[row.id] = p.id
    svc = container.payroll_service

    with pytest.raises(BusinessRuleError):
        svc.mark_paid(p.id)

    svc.approve(p.id)
    svc.mark_paid(p.id)

    assert payrolls_repo.get_by_id(p.id).status == PayrollStatus.PAID
    assert hours_repo.get_by_id(row.id).status == WorkingHourStatus.PAID
    with pytest.raises(BusinessRuleError):
        svc.update(p.id, [("bonus", "10")])
    with pytest.raises(BusinessRuleError):
        svc.delete(p.id)


def test_delete_releases_linked_hours(container, payrolls_repo, hours_repo):
    row = _approved(hours_repo, 1, 2)
    p = _payroll(payrolls_repo)
    payrolls_repo.links[row.id] = p.id

    container.payroll_service.delete(p.id)

    assert payrolls_repo.get_by_id(p.id) is None
    [summary] = container.working_hours_aggregator.aggregate(start=date(2024, 1, 1), end=date(2024, 1, 7))
    assert summary.working_hour_ids == (row.id,)


def test_quick_generate_covers_available_hours(container, payrolls_repo, hours_repo, notifications_repo):
    a = _approved(hours_repo, 1, 3, hours="8", rate="20")
    b = _approved(hours_repo, 1, 5, hours="4", rate="30")
    _approved(hours_repo, 2, 4)

    pid = container.payroll_service.quick_generate(profile_id=1, bank_account_id=1)

    p = payrolls_repo.get_by_id(pid)
    assert (p.pay_period_start, p.pay_period_end) == (date(2024, 1, 3), date(2024, 1, 5))
    assert p.total_hours == Decimal("12")
    assert p.hourly_rate == Decimal("25.00")
    assert p.gross_pay == Decimal("300.00")
    assert p.deductions == Decimal("30.00")
    assert p.net_pay == Decimal("270.00")
    assert payrolls_repo.working_hour_ids_for(pid) == [a.id, b.id]
    assert len(notifications_repo.sent) == 1


def test_quick_generate_with_explicit_deductions(container, payrolls_repo, hours_repo):
    _approved(hours_repo, 1, 3)

    pid = container.payroll_service.quick_generate(profile_id=1, deductions=Decimal("5"))

    assert payrolls_repo.get_by_id(pid).net_pay == Decimal("155.00")


def test_quick_generate_needs_hours_and_no_overlap(container, payrolls_repo, hours_repo):
    with pytest.raises(BusinessRuleError):
        container.payroll_service.quick_generate(profile_id=1)

    _approved(hours_repo, 1, 3)
    _payroll(payrolls_repo, pay_period_start=date(2024, 1, 3), pay_period_end=date(2024, 1, 3))
    with pytest.raises(PayrollOverlapError):
        container.payroll_service.quick_generate(profile_id=1)
