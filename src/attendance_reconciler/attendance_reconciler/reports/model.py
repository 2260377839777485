from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class ReportQuery:
    start_date: date
    end_date: date
    facility_id: Optional[int] = None
    employee_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class DayRow:
    """Read-model row: one employee on one date, worked or synthesized."""

    employee_id: int
    employee_name: str
    work_date: date
    status: AttendanceStatus
    facility_id: Optional[int] = None
    shift_id: Optional[int] = None
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    work_hours: float = 0.0
    net_work_hours: float = 0.0
    overtime: float = 0.0
    undertime: float = 0.0
    total_break_time: int = 0
    leave_type: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "facility_id": self.facility_id,
            "shift_id": self.shift_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "check_in": self.check_in.strftime("%H:%M") if self.check_in else None,
            "check_out": self.check_out.strftime("%H:%M") if self.check_out else None,
            "work_hours": self.work_hours,
            "net_work_hours": self.net_work_hours,
            "overtime": self.overtime,
            "undertime": self.undertime,
            "total_break_time": self.total_break_time,
            "leave_type": self.leave_type,
        }


@dataclass(frozen=True)
class ReportPage:
    rows: list[DayRow]
    total: int
    page: int
    limit: int
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def pages(self) -> int:
        return max(1, -(-self.total // self.limit))
