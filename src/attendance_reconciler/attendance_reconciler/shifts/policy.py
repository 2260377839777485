from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import EARLY_ARRIVAL_WINDOW_MINUTES
from .model import BreakConfig, Shift


@dataclass(frozen=True)
class ShiftPolicy:
    """Time boundaries derived from a shift, in minutes from local midnight.

    The midpoint is the check-in/check-out pivot: a punch at or before it is read
    as an arrival, a punch after it as a departure.
    """

    shift_start_minutes: int
    shift_end_minutes: int
    shift_midpoint_minutes: float
    late_threshold: int
    early_threshold: int
    early_departure_threshold: int
    working_hours: float
    break_tracking_enabled: bool
    breaks: tuple[BreakConfig, ...]

    @classmethod
    def from_shift(cls, shift: Shift) -> "ShiftPolicy":
        start = shift.start_time.hour * 60 + shift.start_time.minute
        end = shift.end_time.hour * 60 + shift.end_time.minute
        return cls(
            shift_start_minutes=start,
            shift_end_minutes=end,
            shift_midpoint_minutes=(start + end) / 2,
            late_threshold=start + int(shift.grace_check_in),
            early_threshold=start - EARLY_ARRIVAL_WINDOW_MINUTES,
            early_departure_threshold=end - int(shift.grace_check_out),
            working_hours=float(shift.working_hours),
            break_tracking_enabled=bool(shift.break_tracking_enabled),
            breaks=tuple(shift.breaks),
        )

    @property
    def scheduled_break_minutes(self) -> int:
        return sum(int(b.duration) for b in self.breaks)

    def is_arrival_side(self, minute: int) -> bool:
        return minute <= self.shift_midpoint_minutes

    def break_window_for(self, minute: int) -> Optional[BreakConfig]:
        """First configured break whose window contains the minute, if tracking is on."""
        if not self.break_tracking_enabled:
            return None
        for config in self.breaks:
            if config.contains(minute):
                return config
        return None
