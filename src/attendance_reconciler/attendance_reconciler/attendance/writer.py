from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

from ..core.constants import CONFLICT_BACKOFF_SECONDS, MAX_CONFLICT_RETRIES
from ..core.exceptions import ConcurrencyConflict
from .model import AttendanceDay, PunchRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass
class Mutation:
    """What a read-modify-write step wants stored. ``day=None`` stores nothing."""

    day: Optional[AttendanceDay]
    punches: list[PunchRecord] = field(default_factory=list)
    result: Any = None


class AttendanceDayWriter:
    """Read-modify-write of one AttendanceDay under optimistic concurrency.

    The mutation callback is re-run on a fresh read after every conflict, so it
    must derive everything from the day it is handed.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        max_retries: int = MAX_CONFLICT_RETRIES,
        backoff_seconds: float = CONFLICT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._attendance = attendance
        self._max_retries = int(max_retries)
        self._backoff = float(backoff_seconds)
        self._sleep = sleep

    def mutate(self, employee_id: int, work_date: date, step: Callable[[Optional[AttendanceDay]], Mutation]) -> Mutation:
        attempt = 0
        while True:
            current = self._attendance.get(employee_id, work_date)
            mutation = step(current)
            if mutation.day is None:
                return mutation
            try:
                self._save(mutation)
                return mutation
            except ConcurrencyConflict:
                attempt += 1
                if attempt > self._max_retries:
                    logger.error(
                        "Giving up on attendance for employee %s on %s after %d conflicts",
                        employee_id,
                        work_date,
                        attempt,
                    )
                    raise
                logger.info("Version conflict on employee %s %s, retry %d", employee_id, work_date, attempt)
                self._sleep(self._backoff * attempt)

    def _save(self, mutation: Mutation) -> None:
        day = mutation.day
        if day.is_new:
            day.version = self._attendance.insert(day, mutation.punches)
        else:
            day.version = self._attendance.update(day, mutation.punches)
