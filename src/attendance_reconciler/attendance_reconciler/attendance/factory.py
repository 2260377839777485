from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AttendanceStatus
from ..shifts.policy import ShiftPolicy
from .metrics import is_half_day
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyArrivalStrategy
from .strategies.excused_strategy import ExcusedStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import OnTimeStrategy

_HALF_DAY_EXEMPT = {AttendanceStatus.LATE, AttendanceStatus.EXCUSED}


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, minute: int, policy: ShiftPolicy, excuse: Optional[str] = None) -> AttendanceStrategy:
        if minute < policy.early_threshold:
            return EarlyArrivalStrategy()
        if minute <= policy.late_threshold:
            return OnTimeStrategy()
        if excuse is not None:
            return ExcusedStrategy(excuse)
        return LateStrategy()

    def for_checkout(self, *, net_hours: float, policy: ShiftPolicy, current: AttendanceStatus) -> AttendanceStrategy:
        if current not in _HALF_DAY_EXEMPT and is_half_day(net_hours, policy.working_hours):
            return HalfDayStrategy()
        return OnTimeStrategy()
