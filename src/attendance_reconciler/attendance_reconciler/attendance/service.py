from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..audit.model import SyncFailure
from ..audit.repository import SyncFailureRepository
from ..common.datetime_utils import at_clock, now_local, to_zone
from ..core.constants import DEFAULT_PUNCH_METHOD
from ..core.enums import PunchKind, SyncFailureType
from ..devices.normalizer import CanonicalEvent
from ..employees.resolver import ResolvedIdentity
from ..facilities.model import Facility
from ..leaves.repository import LeaveRepository
from ..shifts.policy import ShiftPolicy
from .breaks import BreakTracker
from .classifier import BreakEnd, BreakStart, CheckIn, CheckOut, Classification, Duplicate, EventClassifier, Rejected
from .factory import AttendanceStrategyFactory
from .model import AttendanceDay, PunchInfo, PunchRecord
from .writer import AttendanceDayWriter, Mutation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationOutcome:
    classification: Classification
    day: Optional[AttendanceDay]

    @property
    def kind(self) -> str:
        return type(self.classification).__name__

    @property
    def applied(self) -> bool:
        return not isinstance(self.classification, (Duplicate, Rejected))


class ReconciliationService:
    """Applies one resolved device event to the employee's AttendanceDay."""

    def __init__(
        self,
        writer: AttendanceDayWriter,
        failures: SyncFailureRepository,
        leaves: Optional[LeaveRepository] = None,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
    ):
        self._writer = writer
        self._failures = failures
        self._leaves = leaves
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._classifier = EventClassifier(self._factory)

    def apply_event(self, event: CanonicalEvent, identity: ResolvedIdentity, facility: Facility) -> ReconciliationOutcome:
        local = to_zone(event.timestamp, facility.timezone)
        work_date = local.date()
        employee = identity.employee
        policy = ShiftPolicy.from_shift(identity.shift)

        def excuse_lookup() -> Optional[str]:
            if self._leaves is None:
                return None
            excuse = self._leaves.find_excuse(employee.employee_id, work_date)
            if excuse is None:
                return None
            return excuse.reason or "approved late-arrival excuse"

        def step(current: Optional[AttendanceDay]) -> Mutation:
            result = self._classifier.classify(
                local_time=local,
                fingerprint=event.fingerprint,
                day=current,
                policy=policy,
                excuse_lookup=excuse_lookup,
            )
            if isinstance(result, Duplicate) and current is not None and current.has_processed(event.fingerprint):
                # Replays of a stored event leave the day untouched.
                return Mutation(day=None, result=result)

            day = current or self._new_day(identity, facility, work_date)
            punches = self._apply(day, result, policy, facility, event)
            day.event_keys.append(event.fingerprint)
            day.raw_audit.append(
                {
                    "received_at": now_local(facility.timezone),
                    "outcome": type(result).__name__,
                    "payload": event.raw_payload,
                }
            )
            return Mutation(day=day, punches=punches, result=result)

        mutation = self._writer.mutate(employee.employee_id, work_date, step)
        result = mutation.result

        if isinstance(result, Rejected):
            logger.warning(
                "Anomaly %s for %s at %s; day flagged for review",
                result.anomaly,
                employee.full_name,
                local.isoformat(),
            )
            self._failures.record(
                SyncFailure(
                    failure_type=SyncFailureType.ATTENDANCE_ANOMALY,
                    facility_id=facility.facility_id,
                    employee_ref=str(employee.employee_id),
                    full_name=employee.full_name,
                    error=result.anomaly,
                    occurred_at=local,
                    metadata={"work_date": work_date.isoformat(), "fingerprint": event.fingerprint},
                )
            )
        elif isinstance(result, Duplicate):
            logger.debug("Duplicate punch for %s at %s: %s", employee.full_name, local.isoformat(), result.reason)
        else:
            logger.info("%s for %s at %s", type(result).__name__, employee.full_name, local.strftime("%Y-%m-%d %H:%M"))

        return ReconciliationOutcome(classification=result, day=mutation.day)

    def _new_day(self, identity: ResolvedIdentity, facility: Facility, work_date: date) -> AttendanceDay:
        shift = identity.shift
        return AttendanceDay(
            employee_id=identity.employee.employee_id,
            work_date=work_date,
            facility_id=facility.facility_id,
            shift_id=shift.shift_id,
            scheduled_check_in=at_clock(work_date, shift.start_time, facility.timezone),
            scheduled_check_out=at_clock(work_date, shift.end_time, facility.timezone),
        )

    def _apply(
        self,
        day: AttendanceDay,
        result: Classification,
        policy: ShiftPolicy,
        facility: Facility,
        event: CanonicalEvent,
    ) -> list[PunchRecord]:
        tracker = BreakTracker(policy, self._factory)

        def punch(kind: PunchKind, minutes: int = 0) -> PunchRecord:
            return PunchRecord(
                employee_id=day.employee_id,
                facility_id=day.facility_id,
                work_date=day.work_date,
                kind=kind,
                punched_at=result.at,
                status=day.status,
                shift_id=day.shift_id,
                break_minutes=minutes,
            )

        if isinstance(result, CheckIn):
            day.check_in = PunchInfo(time=result.at, method=DEFAULT_PUNCH_METHOD, source_device_id=facility.device_id)
            day.late_arrival = result.decision.late_arrival
            day.early_arrival = result.decision.early_arrival
            day.tighten(result.decision.status)
            return [punch(PunchKind.CHECK_IN)]

        if isinstance(result, CheckOut):
            day.check_out = PunchInfo(time=result.at, method=DEFAULT_PUNCH_METHOD, source_device_id=facility.device_id)
            day.early_departure = result.early_departure
            tracker.recompute(day)
            return [punch(PunchKind.CHECK_OUT)]

        if isinstance(result, BreakStart):
            tracker.start(day, result.config, result.at)
            return [punch(PunchKind.BREAK_START)]

        if isinstance(result, BreakEnd):
            ended = tracker.end(day, result.at)
            return [punch(PunchKind.BREAK_END, ended.duration)]

        if isinstance(result, Rejected):
            day.flag(result.anomaly)
        return []
