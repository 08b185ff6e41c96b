"""In-memory repositories shared by the test modules.

Each fake keeps rows in a dict and records write calls in ``writes`` so tests
can assert that a rejected operation never reached the store.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from src.workforce_ops.workforce_ops.bank_accounts.model import BankAccount
from src.workforce_ops.workforce_ops.container import assemble
from src.workforce_ops.workforce_ops.core.enums import PayrollStatus, WorkingHourStatus
from src.workforce_ops.workforce_ops.core.exceptions import StoreError
from src.workforce_ops.workforce_ops.payroll.model import Payroll
from src.workforce_ops.workforce_ops.profiles.model import Profile, ProfilePage
from src.workforce_ops.workforce_ops.rosters.model import RosterEntry
from src.workforce_ops.workforce_ops.working_hours.model import WorkingHour


def make_profile(profile_id: int, name: str, *, rate="20", role="employee", email=None, created_day=1) -> Profile:
    return Profile(
        id=profile_id,
        full_name=name,
        email=email or f"{name.split()[0].lower()}@example.com",
        phone=None,
        role=role,
        employment_type="casual",
        hourly_rate=Decimal(rate),
        salary=Decimal("0"),
        is_active=True,
        start_date=date(2024, 1, 1),
        created_at=datetime(2024, 1, created_day, 9, 0, 0),
    )


class FakeProfilesRepo:
    def __init__(self, profiles=()):
        self.rows = {p.id: p for p in profiles}

    def get_by_id(self, profile_id):
        return self.rows.get(int(profile_id))

    def list_by_ids(self, profile_ids):
        return [self.rows[i] for i in profile_ids if i in self.rows]

    def search(self, *, search, sort_by, ascending, offset=None, limit=None):
        needle = (search or "").lower()
        rows = [
            p
            for p in self.rows.values()
            if not needle
            or needle in (p.full_name or "").lower()
            or needle in (p.email or "").lower()
            or needle in (p.role or "").lower()
        ]
        rows.sort(key=lambda p: (getattr(p, sort_by), p.id), reverse=not ascending)
        total = len(rows)
        if offset is not None and limit is not None:
            rows = rows[offset : offset + limit]
        return ProfilePage(rows=rows, total=total)


class FakeRostersRepo:
    def __init__(self):
        self.rows: dict[int, RosterEntry] = {}
        self.writes: list[tuple] = []
        self._next_id = 1

    def add(self, **kwargs) -> RosterEntry:
        entry = RosterEntry(id=self._next_id, **kwargs)
        self.rows[entry.id] = entry
        self._next_id += 1
        return entry

    def get_by_id(self, roster_id):
        return self.rows.get(int(roster_id))

    def list_by_ids(self, roster_ids):
        return [self.rows[i] for i in roster_ids if i in self.rows]

    def list_range(self, *, start, end, profile_id=None):
        return [
            r
            for r in self.rows.values()
            if start <= r.date <= end and (profile_id is None or r.profile_id == profile_id)
        ]

    def insert_many(self, entries):
        self.writes.append(("insert_many", len(entries)))
        ids = []
        for e in entries:
            ids.append(self.add(**vars(e)).id)
        return ids

    def update(self, roster_id, changes):
        self.writes.append(("update", roster_id))
        entry = self.rows.get(roster_id)
        if not entry or not entry.is_editable:
            return False
        self.rows[roster_id] = replace(entry, **changes)
        return True

    def delete(self, roster_id):
        self.writes.append(("delete", roster_id))
        entry = self.rows.get(roster_id)
        if not entry or not entry.is_editable:
            return False
        del self.rows[roster_id]
        return True


class FakeWorkingHoursRepo:
    def __init__(self, rosters: FakeRostersRepo | None = None):
        self._rosters = rosters
        self.rows: dict[int, WorkingHour] = {}
        self.writes: list[tuple] = []
        self._next_id = 1

    def add(self, **kwargs) -> WorkingHour:
        kwargs.setdefault("client_id", 1)
        kwargs.setdefault("project_id", 1)
        row = WorkingHour(id=self._next_id, **kwargs)
        self.rows[row.id] = row
        self._next_id += 1
        return row

    def get_by_id(self, working_hour_id):
        return self.rows.get(int(working_hour_id))

    def list_by_ids(self, working_hour_ids):
        return [self.rows[i] for i in working_hour_ids if i in self.rows]

    def list_filtered(self, *, start=None, end=None, profile_ids=None, status=None, limit=None):
        ids = None if profile_ids is None else set(profile_ids)
        out = [
            w
            for w in self.rows.values()
            if (start is None or w.date >= start)
            and (end is None or w.date <= end)
            and (ids is None or w.profile_id in ids)
            and (status is None or w.status == status)
        ]
        out.sort(key=lambda w: (w.date, w.id))
        return out[:limit] if limit else out

    def roster_ids_with_hours(self, roster_ids):
        wanted = set(roster_ids)
        return {w.roster_id for w in self.rows.values() if w.roster_id in wanted}

    def insert_many(self, rows):
        self.writes.append(("insert_many", len(rows)))
        return [self.add(**vars(r)).id for r in rows]

    def update(self, working_hour_id, changes):
        self.writes.append(("update", working_hour_id))
        row = self.rows.get(working_hour_id)
        if not row or row.is_locked:
            return False
        self.rows[working_hour_id] = replace(row, **changes)
        return True

    def set_status(self, working_hour_id, status, *, expected=None):
        self.writes.append(("set_status", working_hour_id, status))
        row = self.rows.get(working_hour_id)
        if not row or (expected is not None and row.status != expected):
            return False
        self.rows[working_hour_id] = replace(row, status=status)
        return True

    def approve(self, working_hour_id):
        self.writes.append(("approve", working_hour_id))
        row = self.rows.get(working_hour_id)
        if not row or row.status != WorkingHourStatus.PENDING:
            return False
        self.rows[working_hour_id] = replace(row, status=WorkingHourStatus.APPROVED)
        if self._rosters is not None and row.roster_id in self._rosters.rows:
            roster = self._rosters.rows[row.roster_id]
            self._rosters.rows[row.roster_id] = replace(roster, is_locked=True, is_editable=False)
        return True

    def delete(self, working_hour_id):
        self.writes.append(("delete", working_hour_id))
        row = self.rows.get(working_hour_id)
        if not row or row.is_locked:
            return False
        del self.rows[working_hour_id]
        return True


class FakePayrollsRepo:
    def __init__(self, working_hours: FakeWorkingHoursRepo | None = None):
        self.rows: dict[int, Payroll] = {}
        self.links: dict[int, int] = {}  # working_hours_id -> payroll_id
        self.fail_for: set[int] = set()  # profile ids whose insert raises
        self._hours = working_hours
        self._next_id = 1

    def add(self, **kwargs) -> Payroll:
        kwargs.setdefault("total_hours", Decimal("0"))
        kwargs.setdefault("hourly_rate", Decimal("0"))
        kwargs.setdefault("gross_pay", Decimal("0"))
        kwargs.setdefault("deductions", Decimal("0"))
        kwargs.setdefault("net_pay", Decimal("0"))
        p = Payroll(id=self._next_id, **kwargs)
        self.rows[p.id] = p
        self._next_id += 1
        return p

    def get_by_id(self, payroll_id):
        return self.rows.get(int(payroll_id))

    def list_for_profiles(self, profile_ids):
        wanted = set(profile_ids)
        return [p for p in self.rows.values() if p.profile_id in wanted]

    def list_recent(self, *, limit=200):
        return sorted(self.rows.values(), key=lambda p: (p.pay_period_end, p.id), reverse=True)[:limit]

    def create_with_links(self, payroll, working_hour_ids):
        if payroll.profile_id in self.fail_for:
            raise StoreError("Database operation failed")
        if any(w in self.links for w in working_hour_ids):
            raise StoreError("Database operation failed")
        p = self.add(**vars(payroll))
        for w in working_hour_ids:
            self.links[int(w)] = p.id
        return p.id

    def linked_working_hour_ids(self, working_hour_ids=None):
        if working_hour_ids is None:
            return set(self.links)
        return {int(w) for w in working_hour_ids if int(w) in self.links}

    def working_hour_ids_for(self, payroll_id):
        return sorted(w for w, p in self.links.items() if p == payroll_id)

    def update(self, payroll_id, changes):
        p = self.rows.get(payroll_id)
        if not p or p.status == PayrollStatus.PAID:
            return False
        self.rows[payroll_id] = replace(p, **changes)
        return True

    def set_status(self, payroll_id, status):
        p = self.rows.get(payroll_id)
        if not p:
            return False
        self.rows[payroll_id] = replace(p, status=status)
        return True

    def mark_paid(self, payroll_id):
        p = self.rows.get(payroll_id)
        if not p or p.status != PayrollStatus.APPROVED:
            return False
        self.rows[payroll_id] = replace(p, status=PayrollStatus.PAID)
        if self._hours is not None:
            for w in self.working_hour_ids_for(payroll_id):
                self._hours.set_status(w, WorkingHourStatus.PAID)
        return True

    def delete_with_links(self, payroll_id):
        p = self.rows.get(payroll_id)
        if not p or p.status == PayrollStatus.PAID:
            return False
        self.links = {w: pid for w, pid in self.links.items() if pid != payroll_id}
        del self.rows[payroll_id]
        return True


class FakeNotificationsRepo:
    def __init__(self):
        self.sent = []
        self.broken = False

    def insert_many(self, items):
        if self.broken:
            raise StoreError("Database operation failed")
        self.sent.extend(items)
        return len(items)


class FakeBankAccountsRepo:
    def __init__(self, accounts=()):
        self.rows = {a.id: a for a in accounts}

    def get_by_id(self, account_id):
        return self.rows.get(int(account_id))

    def list_company_accounts(self):
        company = [a for a in self.rows.values() if a.profile_id is None]
        return sorted(company, key=lambda a: (not a.is_primary, a.id))


@pytest.fixture
def profiles_repo():
    return FakeProfilesRepo(
        [
            make_profile(1, "Alice Nguyen", rate="20", created_day=1),
            make_profile(2, "Bob Tran", rate="30", role="manager", created_day=2),
            make_profile(3, "Carol Le", rate="25", created_day=3),
        ]
    )


@pytest.fixture
def rosters_repo():
    return FakeRostersRepo()


@pytest.fixture
def hours_repo(rosters_repo):
    return FakeWorkingHoursRepo(rosters_repo)


@pytest.fixture
def payrolls_repo(hours_repo):
    return FakePayrollsRepo(hours_repo)


@pytest.fixture
def notifications_repo():
    return FakeNotificationsRepo()


@pytest.fixture
def bank_accounts_repo():
    return FakeBankAccountsRepo(
        [
            BankAccount(id=1, bank_name="ANZ", account_name="Company", account_number="111", is_primary=True),
            BankAccount(id=2, bank_name="NAB", account_name="Company Ops", account_number="222"),
            BankAccount(id=3, bank_name="CBA", account_name="Alice", account_number="333", profile_id=1),
        ]
    )


@pytest.fixture
def container(profiles_repo, rosters_repo, hours_repo, payrolls_repo, notifications_repo, bank_accounts_repo):
    return assemble(
        profiles_repo=profiles_repo,
        rosters_repo=rosters_repo,
        working_hours_repo=hours_repo,
        payrolls_repo=payrolls_repo,
        notifications_repo=notifications_repo,
        bank_accounts_repo=bank_accounts_repo,
    )
