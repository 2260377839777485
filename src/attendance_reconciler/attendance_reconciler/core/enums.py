from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Per-day attendance status stored on the aggregate."""

    PRESENT = "present"
    LATE = "late"
    HALF_DAY = "half-day"
    ABSENT = "absent"
    ON_LEAVE = "on-leave"
    EXCUSED = "excused"


# Higher rank = worse classification. Within one day a status may only move up.
STATUS_RANK = {
    AttendanceStatus.ABSENT: 0,
    AttendanceStatus.ON_LEAVE: 0,
    AttendanceStatus.PRESENT: 1,
    AttendanceStatus.HALF_DAY: 2,
    AttendanceStatus.EXCUSED: 3,
    AttendanceStatus.LATE: 4,
}


class BreakType(str, Enum):
    LUNCH = "lunch"
    TEA = "tea"
    PRAYER = "prayer"
    REST = "rest"
    OTHER = "other"


class BreakStatus(str, Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"
    EXCEEDED = "exceeded"


class RecordedBy(str, Enum):
    DEVICE = "device"
    EMPLOYEE = "employee"
    MANUAL = "manual"


class BreakCompliance(str, Enum):
    COMPLIANT = "compliant"
    EXCEEDED = "exceeded"
    INSUFFICIENT = "insufficient"
    NONE = "none"


class PunchKind(str, Enum):
    """Kind of a persisted per-event row, as read by the reporting side."""

    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    BREAK_START = "break-start"
    BREAK_END = "break-end"


class SyncStatus(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in-progress"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class SyncFailureType(str, Enum):
    EMPLOYEE_SYNC = "employee_sync"
    ATTENDANCE_SYNC = "attendance_sync"
    ATTENDANCE_ANOMALY = "attendance_anomaly"
