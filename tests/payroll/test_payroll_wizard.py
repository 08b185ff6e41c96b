from datetime import date, time
from decimal import Decimal

import pytest

from src.workforce_ops.workforce_ops.core.enums import CommitStatus, PayrollStatus, WizardStage, WorkingHourStatus
from src.workforce_ops.workforce_ops.core.exceptions import BusinessRuleError, PayrollOverlapError, ValidationError
from src.workforce_ops.workforce_ops.payroll.wizard import PayrollPreview

WEEK = dict(start=date(2024, 1, 1), end=date(2024, 1, 7))


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


def test_end_to_end_single_employee(container, hours_repo, payrolls_repo, notifications_repo):
    a = _approved(hours_repo, 1, 1)
    b = _approved(hours_repo, 1, 2)
    wizard = container.payroll_wizard

    scope = wizard.select_scope(**WEEK)
    assert scope.selected_ids == (1,)
    assert scope.can_advance

    preview = wizard.preview(scope)
    [line] = preview.lines
    assert line.total_hours == Decimal("16")
    assert line.regular_hours == Decimal("16")
    assert line.overtime_hours == Decimal("0")
    assert line.gross_pay == Decimal("320.00")
    assert line.deductions == Decimal("32.00")
    assert line.net_pay == Decimal("288.00")

    log = wizard.commit(preview, bank_account_id=1)

    assert log.stage is WizardStage.DONE
    [entry] = log.done
    payroll = payrolls_repo.get_by_id(entry.payroll_id)
    assert payroll.status == PayrollStatus.PENDING
    assert (payroll.pay_period_start, payroll.pay_period_end) == (WEEK["start"], WEEK["end"])
    assert payroll.net_pay == Decimal("288.00")
    assert payrolls_repo.working_hour_ids_for(payroll.id) == [a.id, b.id]

    assert [n.recipient_profile_id for n in notifications_repo.sent] == [1]
    assert "Net amount: $288.00" in notifications_repo.sent[0].message

    assert wizard.select_scope(**WEEK).candidates == ()


def test_selection_outside_pool_is_dropped(container, hours_repo):
    _approved(hours_repo, 1, 1)

    scope = container.payroll_wizard.select_scope(**WEEK, profile_ids=[1, 2])

    assert scope.selected_ids == (1,)


def test_preview_requires_a_selection(container, hours_repo):
    _approved(hours_repo, 1, 1)
    scope = container.payroll_wizard.select_scope(**WEEK, profile_ids=[])

    with pytest.raises(ValidationError):
        container.payroll_wizard.preview(scope)


def test_overlap_blocks_advancing(container, hours_repo, payrolls_repo):
    _approved(hours_repo, 1, 3)
    _approved(hours_repo, 2, 3, rate="30")
    payrolls_repo.add(profile_id=1, pay_period_start=date(2023, 12, 25), pay_period_end=date(2024, 1, 1))

    scope = container.payroll_wizard.select_scope(**WEEK)

    assert not scope.can_advance
    assert set(scope.overlaps) == {1}
    with pytest.raises(PayrollOverlapError) as exc:
        container.payroll_wizard.preview(scope)
    assert exc.value.profile_ids == (1,)

    narrowed = container.payroll_wizard.select_scope(**WEEK, profile_ids=[2])
    assert narrowed.can_advance


def test_overtime_is_paid_at_multiplier(container, hours_repo):
    hours_repo.add(
        profile_id=1,
        date=date(2024, 1, 1),
        start_time=time(8, 0),
        end_time=time(18, 0),
        total_hours=Decimal("10"),
        overtime_hours=Decimal("2"),
        hourly_rate=Decimal("20"),
        status=WorkingHourStatus.APPROVED,
    )
    wizard = container.payroll_wizard

    [line] = wizard.preview(wizard.select_scope(**WEEK)).lines

    assert line.regular_pay == Decimal("160.00")
    assert line.overtime_pay == Decimal("60.00")
    assert line.gross_pay == Decimal("220.00")


def test_commit_records_failures_and_retries_only_them(container, hours_repo, payrolls_repo):
    _approved(hours_repo, 1, 1)
    _approved(hours_repo, 2, 1, rate="30")
    wizard = container.payroll_wizard
    preview = wizard.preview(wizard.select_scope(**WEEK))

    payrolls_repo.fail_for = {2}
    log = wizard.commit(preview)

    assert log.stage is WizardStage.COMMIT
    assert [e.line.profile_id for e in log.done] == [1]
    assert [e.line.profile_id for e in log.failed] == [2]
    assert log.failed[0].error
    assert len(payrolls_repo.rows) == 1

    payrolls_repo.fail_for = set()
    log = wizard.retry_failed(log)

    assert log.stage is WizardStage.DONE
    assert all(e.status is CommitStatus.DONE for e in log.entries)
    assert sorted(p.profile_id for p in payrolls_repo.rows.values()) == [1, 2]


def test_commit_rechecks_overlap_before_writing(container, hours_repo, payrolls_repo):
    _approved(hours_repo, 1, 2)
    wizard = container.payroll_wizard
    preview = wizard.preview(wizard.select_scope(**WEEK))

    payrolls_repo.add(profile_id=1, pay_period_start=date(2024, 1, 7), pay_period_end=date(2024, 1, 14))

    with pytest.raises(PayrollOverlapError):
        wizard.commit(preview)
    assert len(payrolls_repo.rows) == 1


def test_empty_window_has_nothing_to_preview(container):
    wizard = container.payroll_wizard
    scope = wizard.select_scope(**WEEK)

    assert scope.candidates == ()
    with pytest.raises(ValidationError):
        wizard.preview(scope)


def test_notification_failure_does_not_undo_commit(container, hours_repo, payrolls_repo, notifications_repo):
    _approved(hours_repo, 1, 1)
    notifications_repo.broken = True
    wizard = container.payroll_wizard

    log = wizard.commit(wizard.preview(wizard.select_scope(**WEEK)))

    assert log.stage is WizardStage.DONE
    assert len(payrolls_repo.rows) == 1
    assert notifications_repo.sent == []


def test_commit_requires_lines(container):
    with pytest.raises(BusinessRuleError):
        container.payroll_wizard.commit(PayrollPreview(start=WEEK["start"], end=WEEK["end"], lines=()))


def test_stale_preview_is_refused(container, hours_repo):
    first = _approved(hours_repo, 1, 1)
    wizard = container.payroll_wizard
    reviewed = {1: [first.id]}

    wizard.ensure_unchanged(wizard.preview(wizard.select_scope(**WEEK)), reviewed)

    _approved(hours_repo, 1, 2)
    fresh = wizard.preview(wizard.select_scope(**WEEK))
    with pytest.raises(BusinessRuleError, match="stale"):
        wizard.ensure_unchanged(fresh, reviewed)

    _approved(hours_repo, 2, 3)
    fresh = wizard.preview(wizard.select_scope(**WEEK, profile_ids=[1]))
    with pytest.raises(BusinessRuleError, match="stale"):
        wizard.ensure_unchanged(fresh, {1: [first.id], 2: [99]})
