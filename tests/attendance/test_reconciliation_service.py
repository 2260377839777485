from datetime import date, datetime, timezone

import pytest

from src.attendance_reconciler.attendance_reconciler.attendance.classifier import CheckIn, Duplicate, Rejected
from src.attendance_reconciler.attendance_reconciler.attendance.model import AttendanceDay, PunchInfo
from src.attendance_reconciler.attendance_reconciler.attendance.service import ReconciliationService
from src.attendance_reconciler.attendance_reconciler.attendance.writer import AttendanceDayWriter
from src.attendance_reconciler.attendance_reconciler.core.enums import (
    AttendanceStatus,
    BreakStatus,
    PunchKind,
    SyncFailureType,
)
from src.attendance_reconciler.attendance_reconciler.core.exceptions import ConcurrencyConflict
from src.attendance_reconciler.attendance_reconciler.devices.normalizer import CanonicalEvent
from src.attendance_reconciler.attendance_reconciler.employees.model import Employee
from src.attendance_reconciler.attendance_reconciler.employees.resolver import ResolvedIdentity
from src.attendance_reconciler.attendance_reconciler.leaves.model import ApprovedLeave
from tests.fakes import InMemoryAttendance, InMemoryFailures, InMemoryLeaves, day_shift, facility

DAY = date(2025, 3, 3)
EMPLOYEE = Employee(employee_id=1, facility_id=1, first_name="Ada", last_name="Obi", device_id="u-1", shift_id=1)


class Harness:
    def __init__(self, *, break_tracking: bool = True, leaves=None):
        self.attendance = InMemoryAttendance()
        self.failures = InMemoryFailures()
        self.sleeps: list[float] = []
        writer = AttendanceDayWriter(self.attendance, sleep=self.sleeps.append)
        self.service = ReconciliationService(writer, self.failures, InMemoryLeaves(leaves or []))
        self.identity = ResolvedIdentity(EMPLOYEE, day_shift(break_tracking=break_tracking), "identifier")
        self.facility = facility()

    def punch(self, hour: int, minute: int, *, when: datetime | None = None):
        event = CanonicalEvent(
            identifier="u-1",
            card_id=None,
            name="Ada Obi",
            timestamp=when or datetime(2025, 3, 3, hour, minute),
            raw_payload={"personUUID": "u-1", "Time": f"{hour:02d}:{minute:02d}"},
        )
        return self.service.apply_event(event, self.identity, self.facility)

    def day(self, work_date: date = DAY) -> AttendanceDay:
        return self.attendance.get(1, work_date)


def test_first_checkin_creates_the_day():
    h = Harness()

    outcome = h.punch(8, 55)

    assert isinstance(outcome.classification, CheckIn)
    day = h.day()
    assert day.status == AttendanceStatus.PRESENT
    assert day.check_in.time.hour == 8 and day.check_in.time.minute == 55
    assert day.scheduled_check_in.hour == 9
    assert day.version == 1
    assert [p.kind for p in h.attendance.punches] == [PunchKind.CHECK_IN]


def test_first_checkin_wins():
    h = Harness()
    h.punch(8, 55)

    outcome = h.punch(9, 30)

    assert isinstance(outcome.classification, Duplicate)
    day = h.day()
    assert day.check_in.time.minute == 55
    assert day.status == AttendanceStatus.PRESENT
    assert len(day.raw_audit) == 2


def test_three_checkins_before_midpoint_keep_only_the_first():
    h = Harness()
    h.punch(8, 55)
    h.punch(9, 30)
    h.punch(10, 15)

    day = h.day()
    assert day.check_in.time.hour == 8 and day.check_in.time.minute == 55
    assert day.status == AttendanceStatus.PRESENT
    assert day.late_arrival == 0
    assert [p.kind for p in h.attendance.punches] == [PunchKind.CHECK_IN]
    assert len(day.event_keys) == 3


def test_replays_do_not_grow_event_keys_or_audit():
    h = Harness()
    for _ in range(2):
        h.punch(8, 55)
        h.punch(9, 30)

    day = h.day()
    assert len(day.event_keys) == 2
    assert len(set(day.event_keys)) == 2
    assert len(day.raw_audit) == 2


def test_replaying_an_event_is_a_no_op():
    h = Harness()
    h.punch(9, 0)
    writes = h.attendance.writes

    outcome = h.punch(9, 0)

    assert isinstance(outcome.classification, Duplicate)
    assert h.attendance.writes == writes
    assert len(h.day().raw_audit) == 1


def test_full_day_metrics_on_checkout():
    h = Harness(break_tracking=False)
    h.punch(9, 0)

    h.punch(17, 0)

    day = h.day()
    assert day.work_hours == 8.0
    assert day.net_work_hours == 8.0
    assert day.overtime == 0.0
    assert day.status == AttendanceStatus.PRESENT


def test_late_status_survives_a_short_day():
    h = Harness(break_tracking=False)
    h.punch(9, 40)

    h.punch(13, 30)

    day = h.day()
    assert day.status == AttendanceStatus.LATE
    assert day.late_arrival == 25
    assert day.net_work_hours == 3.83


def test_short_present_day_becomes_half_day():
    h = Harness(break_tracking=False)
    h.punch(9, 10)

    h.punch(13, 5)

    day = h.day()
    assert day.status == AttendanceStatus.HALF_DAY
    assert day.net_work_hours == 3.92
    assert day.early_departure == 220
    assert day.undertime == 4.08


def test_device_break_is_tracked_between_checkin_and_checkout():
    h = Harness()
    h.punch(9, 0)
    h.punch(12, 0)
    h.punch(12, 50)

    h.punch(17, 0)

    day = h.day()
    assert [b.status for b in day.breaks] == [BreakStatus.EXCEEDED]
    assert day.total_break_time == 50
    assert day.net_work_hours == 7.17
    kinds = [(p.kind, p.break_minutes) for p in h.attendance.punches]
    assert kinds == [
        (PunchKind.CHECK_IN, 0),
        (PunchKind.BREAK_START, 0),
        (PunchKind.BREAK_END, 50),
        (PunchKind.CHECK_OUT, 0),
    ]


def test_checkout_without_checkin_flags_the_day_and_audits():
    h = Harness()

    outcome = h.punch(17, 5)

    assert isinstance(outcome.classification, Rejected)
    day = h.day()
    assert day.needs_review
    assert day.anomalies == ["checkout-without-checkin"]
    assert day.check_in is None and day.check_out is None
    [failure] = h.failures.of_type(SyncFailureType.ATTENDANCE_ANOMALY)
    assert failure.employee_ref == "1"


def test_late_arrival_excuse_marks_day_excused():
    excuse = ApprovedLeave(
        leave_id=1,
        employee_id=1,
        start_date=DAY,
        end_date=DAY,
        leave_type="excuse",
        excuse_type="late-arrival",
        reason="Hospital appointment",
    )
    h = Harness(leaves=[excuse])

    h.punch(10, 0)

    day = h.day()
    assert day.status == AttendanceStatus.EXCUSED
    assert day.late_arrival == 0


def test_timestamps_are_read_in_the_facility_timezone():
    h = Harness()

    # 23:30 UTC on the 2nd is 00:30 on the 3rd in Lagos.
    h.punch(0, 0, when=datetime(2025, 3, 2, 23, 30, tzinfo=timezone.utc))
    h.punch(0, 0, when=datetime(2025, 3, 3, 8, 10, tzinfo=timezone.utc))

    day = h.day()
    assert day is not None
    assert day.check_in.time.hour == 0
    assert day.early_arrival == 8 * 60


def test_conflicts_are_retried_with_backoff():
    h = Harness()
    h.attendance.conflicts_to_raise = 2

    h.punch(9, 0)

    assert h.day().check_in is not None
    assert h.attendance.writes == 1
    assert len(h.sleeps) == 2
    assert h.sleeps[1] > h.sleeps[0]


def test_conflicts_surface_after_bounded_retries():
    h = Harness()
    h.attendance.conflicts_to_raise = 10

    with pytest.raises(ConcurrencyConflict):
        h.punch(9, 0)

    assert h.day() is None
    assert len(h.sleeps) == 3


def test_retry_rereads_a_concurrent_checkin():
    h = Harness()

    def other_writer_checks_in_first(store):
        store.days[(1, DAY)] = AttendanceDay(
            employee_id=1,
            work_date=DAY,
            facility_id=1,
            check_in=PunchInfo(datetime(2025, 3, 3, 8, 50), "card"),
            status=AttendanceStatus.PRESENT,
            version=1,
        )

    h.attendance.conflicts_to_raise = 1
    h.attendance.on_conflict = other_writer_checks_in_first

    outcome = h.punch(9, 30)

    assert isinstance(outcome.classification, Duplicate)
    assert h.day().check_in.time.minute == 50
    assert h.day().status == AttendanceStatus.PRESENT
