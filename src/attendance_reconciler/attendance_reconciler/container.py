from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.break_service import BreakService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import ReconciliationService
from .attendance.writer import AttendanceDayWriter
from .audit.mysql_sync_failure_repository import MySQLSyncFailureRepository
from .core.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_SYNC_INTERVAL_MINUTES,
    DEFAULT_SYNC_MAX_WORKERS,
    DEFAULT_TIMEZONE,
    MAX_REPORT_DAYS,
    MAX_REPORT_ROWS,
)
from .database.connection import DBConfig, DatabaseConnection
from .devices.directory import DirectorySync
from .devices.gateway import DeviceGatewayClient
from .devices.normalizer import EventNormalizer
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.resolver import IdentityResolver
from .facilities.mysql_facility_repository import MySQLFacilityRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .reports.service import ReportingAggregator
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .sync.scheduler import FacilitySyncScheduler
from .sync.service import FacilitySyncService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    facilities_repo: MySQLFacilityRepository
    employees_repo: MySQLEmployeeRepository
    shifts_repo: MySQLShiftRepository
    attendance_repo: MySQLAttendanceRepository
    failures_repo: MySQLSyncFailureRepository
    leaves_repo: MySQLLeaveRepository

    reconciliation_service: ReconciliationService
    break_service: BreakService
    facility_sync_service: FacilitySyncService
    sync_scheduler: FacilitySyncScheduler
    reporting_aggregator: ReportingAggregator


def build_container(
    *,
    db_config: dict,
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    sync_interval_minutes: int = DEFAULT_SYNC_INTERVAL_MINUTES,
    sync_initial_delay_seconds: int = 10,
    sync_max_workers: int = DEFAULT_SYNC_MAX_WORKERS,
    max_report_days: int = MAX_REPORT_DAYS,
    max_report_rows: int = MAX_REPORT_ROWS,
    field_variants: Optional[dict] = None,
    default_timezone: str = DEFAULT_TIMEZONE,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    facilities_repo = MySQLFacilityRepository(conn, default_timezone=default_timezone)
    employees_repo = MySQLEmployeeRepository(conn)
    shifts_repo = MySQLShiftRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    failures_repo = MySQLSyncFailureRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)

    strategy_factory = AttendanceStrategyFactory()
    writer = AttendanceDayWriter(attendance_repo)
    resolver = IdentityResolver(employees_repo, shifts_repo)
    gateway = DeviceGatewayClient(timeout_seconds=http_timeout_seconds)

    reconciliation_service = ReconciliationService(
        writer,
        failures_repo,
        leaves_repo,
        strategy_factory=strategy_factory,
    )
    break_service = BreakService(
        employees_repo,
        shifts_repo,
        facilities_repo,
        attendance_repo,
        writer,
        strategy_factory=strategy_factory,
    )
    facility_sync_service = FacilitySyncService(
        facilities_repo,
        gateway,
        EventNormalizer(field_variants),
        resolver,
        reconciliation_service,
        failures_repo,
        DirectorySync(gateway, employees_repo, resolver, facilities_repo, failures_repo),
    )
    sync_scheduler = FacilitySyncScheduler(
        facilities_repo,
        facility_sync_service,
        interval_minutes=sync_interval_minutes,
        initial_delay_seconds=sync_initial_delay_seconds,
        max_workers=sync_max_workers,
    )
    reporting_aggregator = ReportingAggregator(
        attendance_repo,
        employees_repo,
        shifts_repo,
        leaves_repo,
        max_days=max_report_days,
        max_rows=max_report_rows,
    )

    return Container(
        conn=conn,
        facilities_repo=facilities_repo,
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        failures_repo=failures_repo,
        leaves_repo=leaves_repo,
        reconciliation_service=reconciliation_service,
        break_service=break_service,
        facility_sync_service=facility_sync_service,
        sync_scheduler=sync_scheduler,
        reporting_aggregator=reporting_aggregator,
    )
