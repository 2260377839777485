from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_local, to_zone
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TIMEZONE
from ..core.enums import BreakStatus, BreakType, PunchKind, RecordedBy
from ..core.exceptions import BreakProtocolViolation, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..facilities.repository import FacilityRepository
from ..shifts.model import Shift
from ..shifts.policy import ShiftPolicy
from ..shifts.repository import ShiftRepository
from .breaks import BreakTracker
from .factory import AttendanceStrategyFactory
from .metrics import round_minutes
from .model import AttendanceDay, Break, PunchRecord
from .repository import AttendanceRepository
from .writer import AttendanceDayWriter, Mutation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreakResult:
    message: str
    brk: Break
    total_break_time: int
    net_work_hours: float

    @property
    def exceeded(self) -> bool:
        return self.brk.status == BreakStatus.EXCEEDED

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "break": self.brk.to_dict(),
            "totalBreakTime": self.total_break_time,
            "netWorkHours": self.net_work_hours,
            "exceeded": self.exceeded,
        }


def _config_dict(shift: Shift) -> list[dict]:
    return [
        {
            "type": b.break_type.value,
            "name": b.name,
            "start_window": b.start_window.strftime("%H:%M"),
            "end_window": b.end_window.strftime("%H:%M"),
            "duration": b.duration,
            "max_duration": b.max_duration,
            "is_paid": b.is_paid,
        }
        for b in shift.breaks
    ]


class BreakService:
    """Employee self-service break start/end, sharing the device break tracker."""

    def __init__(
        self,
        employees: EmployeeRepository,
        shifts: ShiftRepository,
        facilities: FacilityRepository,
        attendance: AttendanceRepository,
        writer: AttendanceDayWriter,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
    ):
        self._employees = employees
        self._shifts = shifts
        self._facilities = facilities
        self._attendance = attendance
        self._writer = writer
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _context(self, employee_id: int, now: Optional[datetime]) -> tuple[Employee, Shift, datetime]:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise ValidationError("Employee not found")

        shift = self._shifts.get_by_id(employee.shift_id) if employee.shift_id else None
        if shift is None:
            shift = self._shifts.get_default_for_facility(employee.facility_id)
        if shift is None:
            raise BreakProtocolViolation("Employee has no shift assigned")

        facility = self._facilities.get_by_id(employee.facility_id)
        tz_name = facility.timezone if facility else DEFAULT_TIMEZONE
        local_now = to_zone(now, tz_name) if now else now_local(tz_name)
        return employee, shift, local_now

    @staticmethod
    def _punch(day: AttendanceDay, kind: PunchKind, at: datetime, minutes: int = 0) -> PunchRecord:
        return PunchRecord(
            employee_id=day.employee_id,
            facility_id=day.facility_id,
            work_date=day.work_date,
            kind=kind,
            punched_at=at,
            status=day.status,
            shift_id=day.shift_id,
            break_minutes=minutes,
        )

    def start_break(self, employee_id: int, break_type: BreakType | str, *, now: Optional[datetime] = None) -> BreakResult:
        employee, shift, local_now = self._context(employee_id, now)
        tracker = BreakTracker(ShiftPolicy.from_shift(shift), self._factory)

        def step(current: Optional[AttendanceDay]) -> Mutation:
            config = tracker.check_manual_start(current, break_type)
            started = tracker.start(current, config, local_now, recorded_by=RecordedBy.EMPLOYEE)
            return Mutation(
                day=current,
                punches=[self._punch(current, PunchKind.BREAK_START, local_now)],
                result=BreakResult(
                    message=f"{config.name} started",
                    brk=started,
                    total_break_time=current.total_break_time,
                    net_work_hours=current.net_work_hours,
                ),
            )

        result = self._writer.mutate(employee.employee_id, local_now.date(), step).result
        logger.info("Break started manually - employee %s: %s", employee.full_name, result.brk.name)
        return result

    def end_break(self, employee_id: int, *, now: Optional[datetime] = None) -> BreakResult:
        employee, shift, local_now = self._context(employee_id, now)
        tracker = BreakTracker(ShiftPolicy.from_shift(shift), self._factory)

        def step(current: Optional[AttendanceDay]) -> Mutation:
            tracker.check_manual_end(current)
            ended = tracker.end(current, local_now)
            return Mutation(
                day=current,
                punches=[self._punch(current, PunchKind.BREAK_END, local_now, ended.duration)],
                result=BreakResult(
                    message=f"{ended.name} ended. Duration: {ended.duration} minutes",
                    brk=ended,
                    total_break_time=current.total_break_time,
                    net_work_hours=current.net_work_hours,
                ),
            )

        result = self._writer.mutate(employee.employee_id, local_now.date(), step).result
        logger.info(
            "Break ended manually - employee %s, duration %d mins", employee.full_name, result.brk.duration
        )
        return result

    def get_break_status(self, employee_id: int, *, now: Optional[datetime] = None) -> dict:
        employee, shift, local_now = self._context(employee_id, now)
        day = self._attendance.get(employee.employee_id, local_now.date())
        available = _config_dict(shift)

        if day is None:
            return {
                "onBreak": False,
                "message": "No attendance record for today",
                "availableBreaks": available,
                "breakTrackingEnabled": shift.break_tracking_enabled,
            }

        ongoing = day.ongoing_break()
        current = None
        if ongoing is not None:
            current = {**ongoing.to_dict(), "current_duration": round_minutes(ongoing.start_time, local_now)}

        return {
            "onBreak": ongoing is not None,
            "currentBreak": current,
            "allBreaks": [b.to_dict() for b in day.breaks],
            "totalBreakTime": day.total_break_time,
            "breakCompliance": day.break_compliance.value,
            "availableBreaks": available,
            "breakTrackingEnabled": shift.break_tracking_enabled,
        }

    def get_break_history(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[dict]:
        if (start is None) != (end is None):
            raise ValidationError("start_date and end_date must be given together")
        if start and end and end < start:
            raise ValidationError("end_date must not be before start_date")

        days = self._attendance.list_with_breaks(int(employee_id), start_date=start, end_date=end, limit=limit)
        return [
            {
                "date": d.work_date.isoformat(),
                "breaks": [b.to_dict() for b in d.breaks],
                "totalBreakTime": d.total_break_time,
                "breakCompliance": d.break_compliance.value,
                "status": d.status.value,
            }
            for d in days
        ]
