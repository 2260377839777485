from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import AttendanceStatus
from ...shifts.policy import ShiftPolicy


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    late_arrival: int = 0
    early_arrival: int = 0
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, minute: int, policy: ShiftPolicy) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, net_hours: float, policy: ShiftPolicy, current: AttendanceStatus) -> StatusDecision:
        raise NotImplementedError
