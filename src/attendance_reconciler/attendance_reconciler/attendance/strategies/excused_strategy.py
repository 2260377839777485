from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from ...shifts.policy import ShiftPolicy
from .base import StatusDecision
from .normal_strategy import OnTimeStrategy


class ExcusedStrategy(OnTimeStrategy):
    """Late check-in covered by an approved late-arrival excuse."""

    def __init__(self, reason: Optional[str] = None):
        self._reason = reason

    def decide_checkin(self, *, minute: int, policy: ShiftPolicy) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.EXCUSED, late_arrival=0, note=self._reason)
