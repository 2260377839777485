from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import ApprovedLeave

LATE_ARRIVAL_EXCUSE = "late-arrival"


class LeaveRepository(Protocol):
    def list_approved(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[ApprovedLeave]:
        raise NotImplementedError

    def find_excuse(self, employee_id: int, day: date, excuse_type: str = LATE_ARRIVAL_EXCUSE) -> Optional[ApprovedLeave]:
        raise NotImplementedError
