from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...shifts.policy import ShiftPolicy
from .base import StatusDecision
from .normal_strategy import OnTimeStrategy


class EarlyArrivalStrategy(OnTimeStrategy):
    """Arrived before the early window opened: present, with the minutes recorded."""

    def decide_checkin(self, *, minute: int, policy: ShiftPolicy) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.PRESENT,
            early_arrival=max(0, policy.early_threshold - minute),
        )
