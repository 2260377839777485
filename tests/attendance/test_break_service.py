from datetime import date, datetime

import pytest

from src.attendance_reconciler.attendance_reconciler.attendance.break_service import BreakService
from src.attendance_reconciler.attendance_reconciler.attendance.model import AttendanceDay, PunchInfo
from src.attendance_reconciler.attendance_reconciler.attendance.writer import AttendanceDayWriter
from src.attendance_reconciler.attendance_reconciler.common.datetime_utils import to_zone
from src.attendance_reconciler.attendance_reconciler.core.enums import AttendanceStatus, BreakStatus, PunchKind, RecordedBy
from src.attendance_reconciler.attendance_reconciler.core.exceptions import BreakProtocolViolation, ValidationError
from src.attendance_reconciler.attendance_reconciler.employees.model import Employee
from src.attendance_reconciler.attendance_reconciler.shifts.model import Shift
from tests.fakes import InMemoryAttendance, InMemoryEmployees, InMemoryFacilities, InMemoryShifts, day_shift, facility

DAY = date(2025, 3, 3)


def _at(hour: int, minute: int) -> datetime:
    return datetime(2025, 3, 3, hour, minute)


def _service(*, checked_in: bool = True):
    attendance = InMemoryAttendance()
    if checked_in:
        attendance.days[(1, DAY)] = AttendanceDay(
            employee_id=1,
            work_date=DAY,
            facility_id=1,
            shift_id=1,
            check_in=PunchInfo(to_zone(_at(9, 0), "Africa/Lagos"), "face"),
            status=AttendanceStatus.PRESENT,
            version=1,
        )
    employees = InMemoryEmployees(
        {
            1: Employee(employee_id=1, facility_id=1, first_name="Ada", shift_id=1),
            2: Employee(employee_id=2, facility_id=2, first_name="Bola"),
        }
    )
    service = BreakService(
        employees,
        InMemoryShifts({1: day_shift()}),
        InMemoryFacilities(facility()),
        attendance,
        AttendanceDayWriter(attendance, sleep=lambda s: None),
    )
    return service, attendance


def test_start_and_end_a_manual_break():
    service, attendance = _service()

    started = service.start_break(1, "lunch", now=_at(12, 5))
    ended = service.end_break(1, now=_at(12, 45))

    assert started.message == "Lunch started"
    assert started.brk.recorded_by == RecordedBy.EMPLOYEE
    assert ended.message == "Lunch ended. Duration: 40 minutes"
    assert not ended.exceeded
    day = attendance.get(1, DAY)
    assert day.total_break_time == 40
    assert [b.status for b in day.breaks] == [BreakStatus.COMPLETED]
    assert [p.kind for p in attendance.punches] == [PunchKind.BREAK_START, PunchKind.BREAK_END]


def test_manual_break_over_limit_is_exceeded():
    service, _ = _service()
    service.start_break(1, "lunch", now=_at(12, 0))

    ended = service.end_break(1, now=_at(13, 0))

    assert ended.exceeded
    assert ended.to_dict()["exceeded"] is True


def test_violation_leaves_the_day_untouched():
    service, attendance = _service()
    service.start_break(1, "lunch", now=_at(12, 0))
    writes = attendance.writes

    with pytest.raises(BreakProtocolViolation):
        service.start_break(1, "lunch", now=_at(12, 10))

    assert attendance.writes == writes
    assert len(attendance.get(1, DAY).breaks) == 1


def test_break_requires_check_in():
    service, _ = _service(checked_in=False)

    with pytest.raises(BreakProtocolViolation, match="check in first"):
        service.start_break(1, "lunch", now=_at(12, 0))
    with pytest.raises(BreakProtocolViolation, match="No attendance found"):
        service.end_break(1, now=_at(12, 0))


def test_unknown_employee_and_missing_shift():
    service, _ = _service()

    with pytest.raises(ValidationError):
        service.start_break(99, "lunch", now=_at(12, 0))
    with pytest.raises(BreakProtocolViolation, match="no shift"):
        service.start_break(2, "lunch", now=_at(12, 0))


def test_status_reports_ongoing_break_with_running_duration():
    service, _ = _service()
    service.start_break(1, "lunch", now=_at(12, 0))

    status = service.get_break_status(1, now=_at(12, 25))

    assert status["onBreak"] is True
    assert status["currentBreak"]["current_duration"] == 25
    assert status["breakTrackingEnabled"] is True
    assert status["availableBreaks"][0]["type"] == "lunch"


def test_status_without_attendance():
    service, _ = _service(checked_in=False)

    status = service.get_break_status(1, now=_at(12, 0))

    assert status["onBreak"] is False
    assert status["message"] == "No attendance record for today"


def test_history_lists_days_with_breaks_newest_first():
    service, attendance = _service()
    service.start_break(1, "lunch", now=_at(12, 0))
    service.end_break(1, now=_at(12, 30))

    history = service.get_break_history(1)

    assert [h["date"] for h in history] == ["2025-03-03"]
    assert history[0]["totalBreakTime"] == 30
    with pytest.raises(ValidationError):
        service.get_break_history(1, start=DAY)
