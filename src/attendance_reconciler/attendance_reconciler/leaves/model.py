from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ApprovedLeave:
    """An approved leave (or excuse) covering a date range, inclusive."""

    leave_id: int
    employee_id: int
    start_date: date
    end_date: date
    leave_type: str
    is_half_day: bool = False
    excuse_type: Optional[str] = None
    reason: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
