from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from ..common.datetime_utils import minute_of_day
from ..core.constants import ANOMALY_CHECKOUT_WITHOUT_CHECKIN
from ..shifts.model import BreakConfig
from ..shifts.policy import ShiftPolicy
from .factory import AttendanceStrategyFactory
from .model import AttendanceDay, Break
from .strategies.base import StatusDecision

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckIn:
    at: datetime
    decision: StatusDecision


@dataclass(frozen=True)
class CheckOut:
    at: datetime
    early_departure: int


@dataclass(frozen=True)
class BreakStart:
    at: datetime
    config: BreakConfig


@dataclass(frozen=True)
class BreakEnd:
    at: datetime
    ongoing: Break


@dataclass(frozen=True)
class Duplicate:
    at: datetime
    reason: str


@dataclass(frozen=True)
class Rejected:
    at: datetime
    anomaly: str


Classification = Union[CheckIn, CheckOut, BreakStart, BreakEnd, Duplicate, Rejected]

ExcuseLookup = Callable[[], Optional[str]]


class EventClassifier:
    """Decides what one punch means for a day, without touching storage.

    ``local_time`` must already be in the facility timezone. ``excuse_lookup`` is
    only called for late arrivals and returns the excuse reason, if any.
    """

    def __init__(self, strategy_factory: Optional[AttendanceStrategyFactory] = None):
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def classify(
        self,
        *,
        local_time: datetime,
        fingerprint: str,
        day: Optional[AttendanceDay],
        policy: ShiftPolicy,
        excuse_lookup: Optional[ExcuseLookup] = None,
    ) -> Classification:
        t = minute_of_day(local_time)
        checked_in = day is not None and day.check_in is not None
        checked_out = day is not None and day.check_out is not None

        if day is not None and day.has_processed(fingerprint):
            return Duplicate(local_time, "replayed event")

        if checked_in and not checked_out:
            window = policy.break_window_for(t)
            if window is not None:
                return self._break_transition(local_time, day, window)

        if policy.is_arrival_side(t):
            if checked_in:
                return Duplicate(local_time, "already checked in")
            excuse = None
            if t > policy.late_threshold and excuse_lookup is not None:
                excuse = excuse_lookup()
            strategy = self._factory.for_checkin(minute=t, policy=policy, excuse=excuse)
            return CheckIn(local_time, strategy.decide_checkin(minute=t, policy=policy))

        if not checked_in:
            return Rejected(local_time, ANOMALY_CHECKOUT_WITHOUT_CHECKIN)
        if checked_out:
            return Duplicate(local_time, "already checked out")
        return CheckOut(local_time, max(0, policy.early_departure_threshold - t))

    @staticmethod
    def _break_transition(local_time: datetime, day: AttendanceDay, window: BreakConfig) -> Classification:
        ongoing = day.ongoing_break()
        if ongoing is None:
            return BreakStart(local_time, window)
        # A punch in any break window closes whatever break is open.
        if ongoing.break_type != window.break_type:
            logger.warning(
                "Employee %s punched in the %s window while on %s break; closing %s",
                day.employee_id,
                window.name,
                ongoing.name,
                ongoing.name,
            )
        return BreakEnd(local_time, ongoing)
