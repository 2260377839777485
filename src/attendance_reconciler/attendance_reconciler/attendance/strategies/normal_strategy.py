from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...shifts.policy import ShiftPolicy
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """On-time check-in; check-out keeps whatever the day already is."""

    def decide_checkin(self, *, minute: int, policy: ShiftPolicy) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(self, *, net_hours: float, policy: ShiftPolicy, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
