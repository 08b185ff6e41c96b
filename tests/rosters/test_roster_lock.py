from datetime import date, time
from decimal import Decimal

import pytest

from src.workforce_ops.workforce_ops.common.locking import ensure_editable, lock_state
from src.workforce_ops.workforce_ops.core.enums import LockState, RosterStatus
from src.workforce_ops.workforce_ops.core.exceptions import LockedRecordError, NotFoundError, ValidationError
from src.workforce_ops.workforce_ops.rosters.service import RosterService


def _add(repo, **overrides):
    data = dict(
        profile_id=1,
        client_id=1,
        project_id=1,
        date=date(2024, 1, 1),
        start_time=time(9, 0),
        end_time=time(17, 0),
        total_hours=Decimal("8.00"),
    )
    data.update(overrides)
    return repo.add(**data)


def test_lock_state_follows_flags(rosters_repo):
    entry = _add(rosters_repo)
    assert lock_state(entry) is LockState.EDITABLE

    locked = _add(rosters_repo, is_locked=True, is_editable=False)
    assert lock_state(locked) is LockState.LOCKED
    with pytest.raises(LockedRecordError, match="already approved"):
        ensure_editable(locked)


def test_locked_roster_rejects_edit_and_delete_without_store_call(rosters_repo):
    entry = _add(rosters_repo, is_locked=True, is_editable=False)
    svc = RosterService(rosters_repo)

    with pytest.raises(LockedRecordError):
        svc.update(entry.id, {"notes": "late change"})
    with pytest.raises(LockedRecordError):
        svc.delete(entry.id)

    assert rosters_repo.writes == []
    assert rosters_repo.get_by_id(entry.id) == entry


def test_update_recomputes_hours_when_times_change(rosters_repo):
    entry = _add(rosters_repo)
    svc = RosterService(rosters_repo)

    updated = svc.update(entry.id, {"end_time": time(12, 0), "status": "confirmed"})

    assert updated.total_hours == Decimal("3.00")
    assert updated.status == RosterStatus.CONFIRMED


def test_lock_is_one_way(rosters_repo, hours_repo):
    entry = _add(rosters_repo)
    row = hours_repo.add(
        profile_id=1,
        roster_id=entry.id,
        date=entry.date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        total_hours=entry.total_hours,
    )
    svc = RosterService(rosters_repo)

    assert hours_repo.approve(row.id)
    assert not hours_repo.approve(row.id)

    locked = rosters_repo.get_by_id(entry.id)
    assert locked.is_locked and not locked.is_editable
    with pytest.raises(LockedRecordError):
        svc.update(entry.id, {"notes": "x"})


def test_delete_unknown_roster(rosters_repo):
    with pytest.raises(NotFoundError):
        RosterService(rosters_repo).delete(99)


def test_update_rejects_bad_values_without_store_call(rosters_repo):
    entry = _add(rosters_repo)
    svc = RosterService(rosters_repo)

    with pytest.raises(ValidationError, match="Unknown status"):
        svc.update(entry.id, {"status": "bogus"})
    with pytest.raises(ValidationError, match="whole number"):
        svc.update(entry.id, {"expected_profiles": None})
    with pytest.raises(ValidationError, match="at least 1"):
        svc.update(entry.id, {"expected_profiles": 0})
    with pytest.raises(ValidationError, match="date is required"):
        svc.update(entry.id, {"date": None})

    assert rosters_repo.writes == []
