from datetime import date, datetime, timedelta, timezone

import pytest

from src.attendance_reconciler.attendance_reconciler.attendance.service import ReconciliationService
from src.attendance_reconciler.attendance_reconciler.attendance.writer import AttendanceDayWriter
from src.attendance_reconciler.attendance_reconciler.core.enums import AttendanceStatus, SyncFailureType, SyncStatus
from src.attendance_reconciler.attendance_reconciler.core.exceptions import DeviceTimeout
from src.attendance_reconciler.attendance_reconciler.devices.directory import DirectorySync
from src.attendance_reconciler.attendance_reconciler.devices.gateway import DeviceBatch
from src.attendance_reconciler.attendance_reconciler.devices.normalizer import EventNormalizer
from src.attendance_reconciler.attendance_reconciler.employees.model import Employee
from src.attendance_reconciler.attendance_reconciler.employees.resolver import IdentityResolver
from src.attendance_reconciler.attendance_reconciler.sync.service import FacilitySyncService
from tests.fakes import (
    FakeGateway,
    InMemoryAttendance,
    InMemoryEmployees,
    InMemoryFacilities,
    InMemoryFailures,
    InMemoryLeaves,
    InMemoryShifts,
    day_shift,
    facility,
)

DAY = date(2025, 3, 3)
NOW = datetime(2025, 3, 3, 18, 0, tzinfo=timezone.utc)

CHECK_IN = {"personUUID": "u-1", "Name": "Ada Obi", "Time": "2025-03-03 08:55:00"}
CHECK_OUT = {"personUUID": "u-1", "Name": "Ada Obi", "Time": "2025-03-03 17:10:00"}


def _build(*facilities_, events=None):
    facilities = InMemoryFacilities(*(facilities_ or (facility(),)))
    employees = InMemoryEmployees(
        {
            1: Employee(employee_id=1, facility_id=1, first_name="Ada", last_name="Obi", device_id="u-1", shift_id=1),
            2: Employee(employee_id=2, facility_id=2, first_name="Bola", device_id="u-2", shift_id=1),
        }
    )
    attendance = InMemoryAttendance()
    failures = InMemoryFailures()
    gateway = FakeGateway(events=events or {})
    reconciliation = ReconciliationService(
        AttendanceDayWriter(attendance, sleep=lambda s: None), failures, InMemoryLeaves()
    )
    service = FacilitySyncService(
        facilities,
        gateway,
        EventNormalizer(),
        IdentityResolver(employees, InMemoryShifts({1: day_shift(break_tracking=False)})),
        reconciliation,
        failures,
    )
    return service, facilities, attendance, failures, gateway


def test_sync_applies_events_and_advances_last_sync_time():
    service, facilities, attendance, _, gateway = _build(events={1: DeviceBatch(records=[CHECK_IN, CHECK_OUT], device_id="D-9")})

    result = service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert result.status == SyncStatus.SUCCESS
    assert (result.fetched, result.applied, result.duplicates) == (2, 2, 0)
    assert facilities.statuses(1) == [SyncStatus.IN_PROGRESS, SyncStatus.SUCCESS]
    stored = facilities.get_by_id(1)
    assert stored.last_sync_time == NOW
    assert stored.device_id == "D-9"
    day = attendance.get(1, DAY)
    assert day.check_in is not None and day.check_out is not None
    assert day.status == AttendanceStatus.PRESENT


def test_window_starts_at_last_sync_or_lookback():
    last = NOW - timedelta(minutes=5)
    service, facilities, _, _, gateway = _build(facility(last_sync_time=last))

    service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert gateway.calls == [(1, last, NOW)]

    service2, facilities2, _, _, gateway2 = _build()
    service2.sync_facility(facilities2.get_by_id(1), now=NOW)
    assert gateway2.calls[0][1] == NOW - timedelta(hours=24)


def test_event_order_in_the_batch_does_not_matter():
    forward, f1, att1, _, _ = _build(events={1: DeviceBatch(records=[CHECK_IN, CHECK_OUT])})
    backward, f2, att2, _, _ = _build(events={1: DeviceBatch(records=[CHECK_OUT, CHECK_IN])})

    forward.sync_facility(f1.get_by_id(1), now=NOW)
    backward.sync_facility(f2.get_by_id(1), now=NOW)

    a, b = att1.get(1, DAY), att2.get(1, DAY)
    assert a.check_in == b.check_in
    assert a.check_out == b.check_out
    assert a.status == b.status
    assert a.net_work_hours == b.net_work_hours


def test_resync_of_same_batch_changes_nothing():
    service, facilities, attendance, _, _ = _build(events={1: DeviceBatch(records=[CHECK_IN, CHECK_OUT])})
    service.sync_facility(facilities.get_by_id(1), now=NOW)
    before = attendance.get(1, DAY)
    writes = attendance.writes

    result = service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert result.duplicates == 2
    assert attendance.writes == writes
    assert attendance.get(1, DAY) == before


def test_gateway_timeout_fails_only_that_facility():
    service, facilities, attendance, _, _ = _build(
        facility(1, "Lagos"),
        facility(2, "Abuja"),
        events={
            1: DeviceTimeout("Gateway timed out after 30s"),
            2: DeviceBatch(records=[{"personUUID": "u-2", "Time": "2025-03-03 09:00:00"}]),
        },
    )

    failed = service.sync_facility(facilities.get_by_id(1), now=NOW)
    ok = service.sync_facility(facilities.get_by_id(2), now=NOW)

    assert failed.status == SyncStatus.FAILED
    assert "timed out" in failed.error
    assert facilities.get_by_id(1).last_sync_time is None
    assert facilities.get_by_id(1).last_sync_error == "Gateway timed out after 30s"
    assert ok.status == SyncStatus.SUCCESS
    assert attendance.get(2, DAY) is not None


def test_unexpected_error_marks_failed_and_propagates():
    service, facilities, _, _, _ = _build(events={1: RuntimeError("boom")})

    with pytest.raises(RuntimeError):
        service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert facilities.statuses(1) == [SyncStatus.IN_PROGRESS, SyncStatus.FAILED]


def test_offline_endpoint_is_skipped_without_calling_the_gateway():
    service, facilities, _, _, gateway = _build(facility(device_api_url="https://ab12cd.ngrok-free.app/api"))

    result = service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert result.status == SyncStatus.SKIPPED
    assert gateway.calls == []
    assert facilities.statuses(1) == [SyncStatus.SKIPPED]


def test_bad_and_unknown_records_are_counted_and_audited():
    records = [
        {"Name": "No Id", "Time": "2025-03-03 09:00:00"},
        {"personUUID": "ghost", "Name": "Ghost", "Time": "2025-03-03 09:05:00"},
        CHECK_IN,
    ]
    service, facilities, _, failures, _ = _build(events={1: DeviceBatch(records=records)})

    result = service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert (result.dropped, result.unresolved, result.applied) == (1, 1, 1)
    audited = failures.of_type(SyncFailureType.ATTENDANCE_SYNC)
    assert [f.employee_ref for f in audited] == ["ghost"]
    assert audited[0].facility_id == 1


def test_conflicted_punch_is_audited_and_refetched_next_sync():
    service, facilities, attendance, failures, gateway = _build(events={1: DeviceBatch(records=[CHECK_IN])})
    attendance.conflicts_to_raise = 10

    result = service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert result.status == SyncStatus.SUCCESS
    assert result.conflicts == 1
    assert attendance.get(1, DAY) is None
    audited = failures.of_type(SyncFailureType.ATTENDANCE_SYNC)
    assert [f.employee_ref for f in audited] == ["u-1"]
    # 08:55 in Lagos is 07:55 UTC; the cursor stays there instead of moving to NOW.
    held = facilities.get_by_id(1).last_sync_time
    assert held == datetime(2025, 3, 3, 7, 55, tzinfo=timezone.utc)

    attendance.conflicts_to_raise = 0
    later = NOW + timedelta(minutes=5)
    retried = service.sync_facility(facilities.get_by_id(1), now=later)

    assert gateway.calls[-1] == (1, held, later)
    assert retried.applied == 1
    assert attendance.get(1, DAY).check_in is not None
    assert facilities.get_by_id(1).last_sync_time == later


class BrokenWriteBackEmployees(InMemoryEmployees):
    def update_device_identity(self, employee_id, **changes):
        raise RuntimeError("db down")


def test_directory_write_back_error_does_not_block_attendance():
    fac = facility(user_api_url="https://gw1.example.org/users")
    facilities = InMemoryFacilities(fac)
    employees = BrokenWriteBackEmployees(
        {1: Employee(employee_id=1, facility_id=1, first_name="Ada", last_name="Obi", device_id="u-1", shift_id=1)}
    )
    resolver = IdentityResolver(employees, InMemoryShifts({1: day_shift(break_tracking=False)}))
    attendance = InMemoryAttendance()
    failures = InMemoryFailures()
    gateway = FakeGateway(
        events={1: DeviceBatch(records=[CHECK_IN])},
        directory={1: DeviceBatch(records=[{"personUUID": "u-1", "Name": "Ada Obi", "RegPicinfo": "b64..."}])},
    )
    service = FacilitySyncService(
        facilities,
        gateway,
        EventNormalizer(),
        resolver,
        ReconciliationService(AttendanceDayWriter(attendance, sleep=lambda s: None), failures, InMemoryLeaves()),
        failures,
        DirectorySync(gateway, employees, resolver, facilities, failures),
    )

    result = service.sync_facility(facilities.get_by_id(1), now=NOW)

    assert result.status == SyncStatus.SUCCESS
    assert facilities.statuses(1) == [SyncStatus.IN_PROGRESS, SyncStatus.SUCCESS]
    assert attendance.get(1, DAY).check_in is not None
