from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ..attendance.metrics import compute_day_metrics
from ..attendance.model import PunchRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_dates
from ..common.validators import clamp_page, require_date_range
from ..core.constants import DEFAULT_WORKING_HOURS, MAX_REPORT_DAYS, MAX_REPORT_ROWS
from ..core.enums import STATUS_RANK, AttendanceStatus, PunchKind
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..leaves.model import ApprovedLeave
from ..leaves.repository import LeaveRepository
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from .model import DayRow, ReportPage, ReportQuery

logger = logging.getLogger(__name__)

_KIND_ORDER = {PunchKind.CHECK_IN: 0, PunchKind.BREAK_START: 1, PunchKind.BREAK_END: 2, PunchKind.CHECK_OUT: 3}
_ARRIVAL_SIGNALS = {AttendanceStatus.LATE, AttendanceStatus.EXCUSED}


@dataclass
class _Merged:
    employee_id: int
    work_date: date
    facility_id: Optional[int] = None
    shift_id: Optional[int] = None
    check_in: Optional[PunchRecord] = None
    check_out: Optional[PunchRecord] = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    break_minutes: int = 0


class ReportingAggregator:
    """Re-derives per-day attendance for a window from stored punch rows.

    Uses the same metrics functions as the pipeline, adds absent rows for
    working days without punches and overlays approved leave. Output does not
    depend on the order rows come back from storage.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        shifts: ShiftRepository,
        leaves: LeaveRepository,
        *,
        max_days: int = MAX_REPORT_DAYS,
        max_rows: int = MAX_REPORT_ROWS,
        today: Callable[[], date] = date.today,
    ):
        self._attendance = attendance
        self._employees = employees
        self._shifts = shifts
        self._leaves = leaves
        self._max_days = int(max_days)
        self._max_rows = int(max_rows)
        self._today = today

    def build(self, query: ReportQuery) -> ReportPage:
        require_date_range(query.start_date, query.end_date, max_days=self._max_days)
        page, limit = clamp_page(query.page, query.limit, max_limit=self._max_rows)

        punches = self._attendance.list_punches(
            start_date=query.start_date,
            end_date=query.end_date,
            facility_id=query.facility_id,
            employee_id=query.employee_id,
        )
        merged = self._merge(punches)

        roster = {
            e.employee_id: e
            for e in self._employees.list_active(facility_id=query.facility_id, employee_id=query.employee_id)
        }
        shift_cache: dict[int, Optional[Shift]] = {}

        def shift_for(shift_id: Optional[int]) -> Optional[Shift]:
            if shift_id is None:
                return None
            if shift_id not in shift_cache:
                shift_cache[shift_id] = self._shifts.get_by_id(shift_id)
            return shift_cache[shift_id]

        employee_ids = sorted(set(roster) | {key[0] for key in merged})
        leaves = self._leaves.list_approved(
            start_date=query.start_date, end_date=query.end_date, employee_ids=employee_ids
        )
        leave_index: dict[int, list[ApprovedLeave]] = defaultdict(list)
        for leave in sorted(leaves, key=lambda l: (l.start_date, l.leave_id)):
            leave_index[leave.employee_id].append(leave)

        rows: list[DayRow] = []
        for (employee_id, work_date), m in merged.items():
            employee = roster.get(employee_id) or self._employees.get_by_id(employee_id)
            rows.append(self._worked_row(m, employee, shift_for(m.shift_id), _leave_on(leave_index, employee_id, work_date)))

        last_synth_day = min(query.end_date, self._today())
        for employee in roster.values():
            shift = shift_for(employee.shift_id)
            for day in iter_dates(query.start_date, last_synth_day):
                if (employee.employee_id, day) in merged:
                    continue
                if shift is not None and not shift.is_working_day(day):
                    continue
                rows.append(self._absent_row(employee, day, _leave_on(leave_index, employee.employee_id, day)))

        if query.status is not None:
            rows = [r for r in rows if r.status == query.status]

        rows.sort(key=lambda r: (-r.work_date.toordinal(), r.employee_id))
        summary: dict[str, int] = defaultdict(int)
        for r in rows:
            summary[r.status.value] += 1

        offset = (page - 1) * limit
        logger.debug("Report %s..%s: %d rows", query.start_date, query.end_date, len(rows))
        return ReportPage(rows=rows[offset : offset + limit], total=len(rows), page=page, limit=limit, summary=dict(summary))

    @staticmethod
    def _merge(punches) -> dict[tuple[int, date], _Merged]:
        ordered = sorted(
            punches,
            key=lambda p: (p.employee_id, p.work_date, p.punched_at, _KIND_ORDER[p.kind], p.break_minutes),
        )
        merged: dict[tuple[int, date], _Merged] = {}
        for p in ordered:
            key = (p.employee_id, p.work_date)
            m = merged.get(key)
            if m is None:
                m = merged[key] = _Merged(employee_id=p.employee_id, work_date=p.work_date)
            m.facility_id = m.facility_id or p.facility_id
            m.shift_id = m.shift_id or p.shift_id

            if p.kind == PunchKind.CHECK_IN:
                if m.check_in is None:
                    m.check_in = p
            elif p.kind == PunchKind.CHECK_OUT:
                m.check_out = p
            elif p.kind == PunchKind.BREAK_END:
                m.break_minutes += int(p.break_minutes)

            if p.status in _ARRIVAL_SIGNALS and STATUS_RANK[p.status] > STATUS_RANK[m.status]:
                m.status = p.status
        return merged

    @staticmethod
    def _worked_row(m: _Merged, employee: Optional[Employee], shift: Optional[Shift], leave: Optional[ApprovedLeave]) -> DayRow:
        name = employee.full_name if employee else f"#{m.employee_id}"
        status = m.status if m.check_in is not None else AttendanceStatus.ABSENT
        working_hours = float(shift.working_hours) if shift else DEFAULT_WORKING_HOURS
        metrics = None
        if m.check_in is not None and m.check_out is not None:
            metrics = compute_day_metrics(m.check_in.punched_at, m.check_out.punched_at, m.break_minutes, working_hours)
            if metrics.half_day and status not in _ARRIVAL_SIGNALS:
                status = AttendanceStatus.HALF_DAY

        if leave is not None and leave.is_half_day and status == AttendanceStatus.PRESENT:
            status = AttendanceStatus.HALF_DAY

        return DayRow(
            employee_id=m.employee_id,
            employee_name=name,
            work_date=m.work_date,
            status=status,
            facility_id=m.facility_id,
            shift_id=m.shift_id,
            check_in=m.check_in.punched_at if m.check_in else None,
            check_out=m.check_out.punched_at if m.check_out else None,
            work_hours=metrics.work_hours if metrics else 0.0,
            net_work_hours=metrics.net_work_hours if metrics else 0.0,
            overtime=metrics.overtime if metrics else 0.0,
            undertime=metrics.undertime if metrics else 0.0,
            total_break_time=m.break_minutes,
            leave_type=leave.leave_type if leave else None,
        )

    @staticmethod
    def _absent_row(employee: Employee, day: date, leave: Optional[ApprovedLeave]) -> DayRow:
        status = AttendanceStatus.ABSENT
        if leave is not None:
            status = AttendanceStatus.HALF_DAY if leave.is_half_day else AttendanceStatus.ON_LEAVE
        return DayRow(
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            work_date=day,
            status=status,
            facility_id=employee.facility_id,
            shift_id=employee.shift_id,
            leave_type=leave.leave_type if leave else None,
        )


def _leave_on(index: dict[int, list[ApprovedLeave]], employee_id: int, day: date) -> Optional[ApprovedLeave]:
    for leave in index.get(employee_id, ()):
        if leave.covers(day):
            return leave
    return None
