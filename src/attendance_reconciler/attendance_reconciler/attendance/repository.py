from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceDay, PunchRecord


class AttendanceRepository(Protocol):
    def get(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        raise NotImplementedError

    def insert(self, day: AttendanceDay, punches: Sequence[PunchRecord] = ()) -> int:
        """Store a new day with its punch rows; returns the new version.

        Raises ConcurrencyConflict when the (employee, date) row already exists.
        """

        raise NotImplementedError

    def update(self, day: AttendanceDay, punches: Sequence[PunchRecord] = ()) -> int:
        """Store a day read at ``day.version``; returns the new version.

        Raises ConcurrencyConflict when the stored version moved on.
        """

        raise NotImplementedError

    def list_days(
        self,
        *,
        start_date: date,
        end_date: date,
        facility_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceDay]:
        raise NotImplementedError

    def list_punches(
        self,
        *,
        start_date: date,
        end_date: date,
        facility_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[PunchRecord]:
        raise NotImplementedError

    def list_with_breaks(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 30,
    ) -> Sequence[AttendanceDay]:
        """Days that carry at least one break, newest first."""

        raise NotImplementedError
