from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

from ..core.constants import DEFAULT_BREAK_MAX_DURATION, DEFAULT_GRACE_MINUTES, DEFAULT_WORKING_HOURS
from ..core.enums import BreakType

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class BreakConfig:
    """A configured break: the window a punch must land in, and its duration limits."""

    break_type: BreakType
    name: str
    start_window: time
    end_window: time
    duration: int = 60
    max_duration: int = DEFAULT_BREAK_MAX_DURATION
    is_paid: bool = False

    def contains(self, minute: int) -> bool:
        start = self.start_window.hour * 60 + self.start_window.minute
        end = self.end_window.hour * 60 + self.end_window.minute
        return start <= minute <= end


@dataclass(frozen=True)
class Shift:
    """Work shift as read from the directory (read-mostly collaborator)."""

    shift_id: int
    shift_name: str
    start_time: time
    end_time: time
    grace_check_in: int = DEFAULT_GRACE_MINUTES
    grace_check_out: int = DEFAULT_GRACE_MINUTES
    working_hours: float = DEFAULT_WORKING_HOURS
    break_tracking_enabled: bool = False
    breaks: tuple[BreakConfig, ...] = field(default_factory=tuple)
    working_days: tuple[str, ...] = field(default_factory=tuple)
    facility_id: Optional[int] = None

    @property
    def scheduled_break_minutes(self) -> int:
        return sum(int(b.duration) for b in self.breaks)

    def find_break(self, break_type: BreakType | str) -> Optional[BreakConfig]:
        wanted = BreakType(break_type)
        for b in self.breaks:
            if b.break_type == wanted:
                return b
        return None

    def is_working_day(self, day: date) -> bool:
        if not self.working_days:
            return True
        return WEEKDAY_NAMES[day.weekday()] in self.working_days
