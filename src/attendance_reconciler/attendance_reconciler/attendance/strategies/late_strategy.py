from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...shifts.policy import ShiftPolicy
from .base import StatusDecision
from .normal_strategy import OnTimeStrategy


class LateStrategy(OnTimeStrategy):
    """Late check-in."""

    def decide_checkin(self, *, minute: int, policy: ShiftPolicy) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, late_arrival=max(0, minute - policy.late_threshold))
