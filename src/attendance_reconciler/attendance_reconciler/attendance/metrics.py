from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..core.constants import COMPLIANCE_EXCEEDED_FACTOR, COMPLIANCE_INSUFFICIENT_FACTOR
from ..core.enums import BreakCompliance


def round2(value: float) -> float:
    return round(float(value), 2)


def round_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, half a minute rounding up."""
    seconds = (end - start).total_seconds()
    return max(0, int((seconds + 30) // 60))


def work_hours(check_in: datetime, check_out: datetime) -> float:
    return round2(max(0.0, (check_out - check_in).total_seconds()) / 3600)


def net_work_hours(work: float, total_break_minutes: int) -> float:
    return round2(max(0.0, work - total_break_minutes / 60))


def overtime(net: float, working_hours: float) -> float:
    return round2(max(0.0, net - working_hours))


def undertime(net: float, working_hours: float) -> float:
    return round2(max(0.0, working_hours - net))


def is_half_day(net: float, working_hours: float) -> bool:
    return net < working_hours / 2


def break_compliance(durations: Iterable[int], scheduled_minutes: int) -> BreakCompliance:
    durations = list(durations)
    if not durations:
        return BreakCompliance.NONE
    total = sum(durations)
    if total > scheduled_minutes * COMPLIANCE_EXCEEDED_FACTOR:
        return BreakCompliance.EXCEEDED
    if total < scheduled_minutes * COMPLIANCE_INSUFFICIENT_FACTOR:
        return BreakCompliance.INSUFFICIENT
    return BreakCompliance.COMPLIANT


@dataclass(frozen=True)
class DayMetrics:
    work_hours: float
    net_work_hours: float
    overtime: float
    undertime: float
    half_day: bool


def compute_day_metrics(check_in: datetime, check_out: datetime, total_break_minutes: int, working_hours: float) -> DayMetrics:
    """Pipeline and reports share this so both sides classify a day the same way."""
    work = work_hours(check_in, check_out)
    net = net_work_hours(work, total_break_minutes)
    return DayMetrics(
        work_hours=work,
        net_work_hours=net,
        overtime=overtime(net, working_hours),
        undertime=undertime(net, working_hours),
        half_day=is_half_day(net, working_hours),
    )
