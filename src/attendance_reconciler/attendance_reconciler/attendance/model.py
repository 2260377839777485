from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import (
    STATUS_RANK,
    AttendanceStatus,
    BreakCompliance,
    BreakStatus,
    BreakType,
    PunchKind,
    RecordedBy,
)


@dataclass(frozen=True)
class PunchInfo:
    time: datetime
    method: str
    source_device_id: Optional[str] = None


@dataclass
class Break:
    break_type: BreakType
    name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int = 0
    status: BreakStatus = BreakStatus.ONGOING
    recorded_by: RecordedBy = RecordedBy.DEVICE

    @property
    def is_ongoing(self) -> bool:
        return self.status == BreakStatus.ONGOING

    def to_dict(self) -> dict:
        return {
            "type": self.break_type.value,
            "name": self.name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "status": self.status.value,
            "recorded_by": self.recorded_by.value,
        }


@dataclass
class AttendanceDay:
    """Canonical attendance of one employee on one local calendar date.

    Mutated in place by the pipeline and saved with an optimistic version check;
    version 0 means the row has not been stored yet.
    """

    employee_id: int
    work_date: date
    facility_id: int
    shift_id: Optional[int] = None
    scheduled_check_in: Optional[datetime] = None
    scheduled_check_out: Optional[datetime] = None
    check_in: Optional[PunchInfo] = None
    check_out: Optional[PunchInfo] = None
    status: AttendanceStatus = AttendanceStatus.ABSENT
    work_hours: float = 0.0
    net_work_hours: float = 0.0
    overtime: float = 0.0
    undertime: float = 0.0
    late_arrival: int = 0
    early_arrival: int = 0
    early_departure: int = 0
    breaks: list[Break] = field(default_factory=list)
    total_break_time: int = 0
    break_compliance: BreakCompliance = BreakCompliance.NONE
    raw_audit: list[dict] = field(default_factory=list)
    event_keys: list[str] = field(default_factory=list)
    needs_review: bool = False
    anomalies: list[str] = field(default_factory=list)
    version: int = 0
    attendance_day_id: Optional[int] = None

    @property
    def is_new(self) -> bool:
        return self.version == 0

    def ongoing_break(self) -> Optional[Break]:
        for b in self.breaks:
            if b.is_ongoing:
                return b
        return None

    def has_processed(self, fingerprint: str) -> bool:
        return fingerprint in self.event_keys

    def tighten(self, proposed: AttendanceStatus) -> bool:
        """Apply a proposed status only if it ranks strictly above the current one."""
        if STATUS_RANK[proposed] > STATUS_RANK[self.status]:
            self.status = proposed
            return True
        return False

    def flag(self, anomaly: str) -> None:
        self.needs_review = True
        if anomaly not in self.anomalies:
            self.anomalies.append(anomaly)


@dataclass(frozen=True)
class PunchRecord:
    """One applied device or manual event, as read by the reporting side."""

    employee_id: int
    facility_id: int
    work_date: date
    kind: PunchKind
    punched_at: datetime
    status: AttendanceStatus
    shift_id: Optional[int] = None
    break_minutes: int = 0
