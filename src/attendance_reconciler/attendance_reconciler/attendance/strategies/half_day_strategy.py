from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...shifts.policy import ShiftPolicy
from .base import StatusDecision
from .normal_strategy import OnTimeStrategy


class HalfDayStrategy(OnTimeStrategy):
    """Check-out with less than half the scheduled hours worked."""

    def decide_checkout(self, *, net_hours: float, policy: ShiftPolicy, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALF_DAY, note=f"{net_hours:g}h of {policy.working_hours:g}h")
