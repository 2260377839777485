from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_BREAK_MAX_DURATION
from ..core.enums import BreakStatus, BreakType, RecordedBy
from ..core.exceptions import BreakProtocolViolation
from ..shifts.model import BreakConfig
from ..shifts.policy import ShiftPolicy
from .factory import AttendanceStrategyFactory
from .metrics import break_compliance, compute_day_metrics, round_minutes
from .model import AttendanceDay, Break

logger = logging.getLogger(__name__)


class BreakTracker:
    """Break state machine for one day: none -> ongoing -> completed | exceeded.

    Device punches and the manual break API both go through here, so the
    one-ongoing-break rule and the totals are kept in a single place.
    """

    def __init__(self, policy: ShiftPolicy, strategy_factory: Optional[AttendanceStrategyFactory] = None):
        self._policy = policy
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def config_for(self, break_type: BreakType | str) -> Optional[BreakConfig]:
        wanted = BreakType(break_type)
        for config in self._policy.breaks:
            if config.break_type == wanted:
                return config
        return None

    def start(self, day: AttendanceDay, config: BreakConfig, at: datetime, *, recorded_by: RecordedBy = RecordedBy.DEVICE) -> Break:
        if day.ongoing_break() is not None:
            raise BreakProtocolViolation("A break is already ongoing")
        started = Break(break_type=config.break_type, name=config.name, start_time=at, recorded_by=recorded_by)
        day.breaks.append(started)
        return started

    def end(self, day: AttendanceDay, at: datetime) -> Break:
        ongoing = day.ongoing_break()
        if ongoing is None:
            raise BreakProtocolViolation("No active break found")

        ongoing.end_time = at
        ongoing.duration = round_minutes(ongoing.start_time, at)
        config = self.config_for(ongoing.break_type)
        max_duration = config.max_duration if config else DEFAULT_BREAK_MAX_DURATION
        ongoing.status = BreakStatus.EXCEEDED if ongoing.duration > max_duration else BreakStatus.COMPLETED
        if ongoing.status == BreakStatus.EXCEEDED:
            logger.info(
                "Break %s for employee %s exceeded: %d > %d minutes",
                ongoing.name,
                day.employee_id,
                ongoing.duration,
                max_duration,
            )

        self.recompute(day)
        return ongoing

    def recompute(self, day: AttendanceDay) -> None:
        """Refresh break totals, compliance and, once checked out, hours and status."""
        finished = [b.duration for b in day.breaks if not b.is_ongoing]
        day.total_break_time = sum(finished)
        day.break_compliance = break_compliance(finished, self._policy.scheduled_break_minutes)

        if day.check_in is None or day.check_out is None:
            return

        m = compute_day_metrics(day.check_in.time, day.check_out.time, day.total_break_time, self._policy.working_hours)
        day.work_hours = m.work_hours
        day.net_work_hours = m.net_work_hours
        day.overtime = m.overtime
        day.undertime = m.undertime

        strategy = self._factory.for_checkout(net_hours=m.net_work_hours, policy=self._policy, current=day.status)
        decision = strategy.decide_checkout(net_hours=m.net_work_hours, policy=self._policy, current=day.status)
        day.tighten(decision.status)

    def check_manual_start(self, day: Optional[AttendanceDay], break_type: BreakType | str) -> BreakConfig:
        """Validate a self-service break start; raises without touching the day."""
        if not self._policy.break_tracking_enabled:
            raise BreakProtocolViolation("Break tracking is not enabled for this shift")
        if day is None or day.check_in is None:
            raise BreakProtocolViolation("No active attendance found. Please check in first.")
        if day.check_out is not None:
            raise BreakProtocolViolation("Already checked out. Cannot start break.")

        ongoing = day.ongoing_break()
        if ongoing is not None:
            raise BreakProtocolViolation(f"Already on {ongoing.name} break since {ongoing.start_time:%H:%M}")

        try:
            config = self.config_for(break_type)
        except ValueError:
            config = None
        if config is None:
            raise BreakProtocolViolation(f"Break type '{break_type}' not configured for this shift")
        return config

    @staticmethod
    def check_manual_end(day: Optional[AttendanceDay]) -> Break:
        if day is None:
            raise BreakProtocolViolation("No attendance found for today")
        ongoing = day.ongoing_break()
        if ongoing is None:
            raise BreakProtocolViolation("No active break found")
        return ongoing
