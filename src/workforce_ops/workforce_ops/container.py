from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .bank_accounts.mysql_bank_account_repository import MySQLBankAccountRepository
from .bank_accounts.repository import BankAccountRepository
from .bank_accounts.service import BankAccountService
from .core.constants import DEFAULT_DEDUCTION_RATE, OVERTIME_MULTIPLIER
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .payroll.aggregator import WorkingHoursAggregator
from .payroll.calculator.flat_rate import FlatRateDeductionPolicy
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .payroll.wizard import PayrollGenerationWizard
from .profiles.mysql_profile_repository import MySQLProfileRepository
from .profiles.repository import ProfileRepository
from .profiles.service import ProfileOperationsService
from .rosters.mysql_roster_repository import MySQLRosterRepository
from .rosters.repository import RosterRepository
from .rosters.service import RosterService
from .working_hours.mysql_working_hours_repository import MySQLWorkingHoursRepository
from .working_hours.repository import WorkingHoursRepository
from .working_hours.service import WorkingHoursService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    profiles_repo: ProfileRepository
    rosters_repo: RosterRepository
    working_hours_repo: WorkingHoursRepository
    payrolls_repo: PayrollRepository
    notifications_repo: NotificationRepository
    bank_accounts_repo: BankAccountRepository

    profile_operations_service: ProfileOperationsService
    roster_service: RosterService
    working_hours_service: WorkingHoursService
    working_hours_aggregator: WorkingHoursAggregator
    notification_service: NotificationService
    bank_account_service: BankAccountService
    payroll_wizard: PayrollGenerationWizard
    payroll_service: PayrollService


def assemble(
    *,
    profiles_repo: ProfileRepository,
    rosters_repo: RosterRepository,
    working_hours_repo: WorkingHoursRepository,
    payrolls_repo: PayrollRepository,
    notifications_repo: NotificationRepository,
    bank_accounts_repo: BankAccountRepository,
    conn: Optional[DatabaseConnection] = None,
    deduction_rate: Decimal = DEFAULT_DEDUCTION_RATE,
    overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
) -> Container:
    """Wire services on top of the given repositories (MySQL or in-memory)."""

    deduction_policy = FlatRateDeductionPolicy(deduction_rate)
    aggregator = WorkingHoursAggregator(working_hours_repo, payrolls_repo, profiles_repo)
    notification_service = NotificationService(notifications_repo)

    return Container(
        conn=conn,
        profiles_repo=profiles_repo,
        rosters_repo=rosters_repo,
        working_hours_repo=working_hours_repo,
        payrolls_repo=payrolls_repo,
        notifications_repo=notifications_repo,
        bank_accounts_repo=bank_accounts_repo,
        profile_operations_service=ProfileOperationsService(profiles_repo),
        roster_service=RosterService(rosters_repo),
        working_hours_service=WorkingHoursService(
            working_hours_repo,
            rosters_repo,
            profiles_repo,
            overtime_multiplier=overtime_multiplier,
        ),
        working_hours_aggregator=aggregator,
        notification_service=notification_service,
        bank_account_service=BankAccountService(bank_accounts_repo),
        payroll_wizard=PayrollGenerationWizard(
            aggregator,
            payrolls_repo,
            notification_service,
            deduction_policy=deduction_policy,
            overtime_multiplier=overtime_multiplier,
        ),
        payroll_service=PayrollService(
            payrolls_repo,
            aggregator,
            notification_service,
            deduction_policy=deduction_policy,
        ),
    )


def build_container(
    *,
    db_config: dict,
    deduction_rate: Decimal = DEFAULT_DEDUCTION_RATE,
    overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        conn=conn,
        profiles_repo=MySQLProfileRepository(conn),
        rosters_repo=MySQLRosterRepository(conn),
        working_hours_repo=MySQLWorkingHoursRepository(conn),
        payrolls_repo=MySQLPayrollRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        bank_accounts_repo=MySQLBankAccountRepository(conn),
        deduction_rate=deduction_rate,
        overtime_multiplier=overtime_multiplier,
    )
