from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, BreakCompliance, BreakStatus, BreakType, PunchKind, RecordedBy
from ..core.exceptions import ConcurrencyConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dumps_json, fetchall, fetchone, is_duplicate_key, loads_json
from .model import AttendanceDay, Break, PunchInfo, PunchRecord
from .repository import AttendanceRepository

_DAY_COLUMNS = """
    attendance_day_id, employee_id, work_date, facility_id, shift_id, scheduled_check_in, scheduled_check_out,
    check_in, check_out, status, work_hours, net_work_hours, overtime, undertime, late_arrival, early_arrival,
    early_departure, breaks, total_break_time, break_compliance, raw_audit, event_keys, needs_review, anomalies, version
"""


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    # DATETIME columns hold facility local wall time.
    if value is None:
        return None
    return value.replace(tzinfo=None)


def _punch_to_json(p: Optional[PunchInfo]) -> Optional[str]:
    if p is None:
        return None
    return dumps_json({"time": p.time, "method": p.method, "source_device_id": p.source_device_id})


def _punch_from_json(value: Any) -> Optional[PunchInfo]:
    data = loads_json(value)
    if not data:
        return None
    return PunchInfo(
        time=datetime.fromisoformat(data["time"]),
        method=data.get("method") or "face",
        source_device_id=data.get("source_device_id"),
    )


def _break_from_dict(d: dict) -> Break:
    return Break(
        break_type=BreakType(d["type"]),
        name=d.get("name") or d["type"],
        start_time=datetime.fromisoformat(d["start_time"]),
        end_time=datetime.fromisoformat(d["end_time"]) if d.get("end_time") else None,
        duration=int(d.get("duration") or 0),
        status=BreakStatus(d.get("status") or BreakStatus.ONGOING.value),
        recorded_by=RecordedBy(d.get("recorded_by") or RecordedBy.DEVICE.value),
    )


def _to_day(r: dict) -> AttendanceDay:
    return AttendanceDay(
        attendance_day_id=int(r["attendance_day_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        facility_id=int(r["facility_id"]),
        shift_id=r.get("shift_id"),
        scheduled_check_in=r.get("scheduled_check_in"),
        scheduled_check_out=r.get("scheduled_check_out"),
        check_in=_punch_from_json(r.get("check_in")),
        check_out=_punch_from_json(r.get("check_out")),
        status=AttendanceStatus(r["status"]),
        work_hours=float(r.get("work_hours") or 0),
        net_work_hours=float(r.get("net_work_hours") or 0),
        overtime=float(r.get("overtime") or 0),
        undertime=float(r.get("undertime") or 0),
        late_arrival=int(r.get("late_arrival") or 0),
        early_arrival=int(r.get("early_arrival") or 0),
        early_departure=int(r.get("early_departure") or 0),
        breaks=[_break_from_dict(b) for b in loads_json(r.get("breaks"), [])],
        total_break_time=int(r.get("total_break_time") or 0),
        break_compliance=BreakCompliance(r.get("break_compliance") or BreakCompliance.NONE.value),
        raw_audit=loads_json(r.get("raw_audit"), []),
        event_keys=loads_json(r.get("event_keys"), []),
        needs_review=bool(r.get("needs_review")),
        anomalies=loads_json(r.get("anomalies"), []),
        version=int(r["version"]),
    )


def _day_values(day: AttendanceDay) -> tuple:
    return (
        day.facility_id,
        day.shift_id,
        _naive(day.scheduled_check_in),
        _naive(day.scheduled_check_out),
        _punch_to_json(day.check_in),
        _punch_to_json(day.check_out),
        day.status.value,
        day.work_hours,
        day.net_work_hours,
        day.overtime,
        day.undertime,
        day.late_arrival,
        day.early_arrival,
        day.early_departure,
        dumps_json([b.to_dict() for b in day.breaks]),
        day.total_break_time,
        day.break_compliance.value,
        dumps_json(day.raw_audit),
        dumps_json(day.event_keys),
        int(day.needs_review),
        dumps_json(day.anomalies),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_DAY_COLUMNS} FROM attendance_days WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_day(r) if r else None

    def insert(self, day: AttendanceDay, punches: Sequence[PunchRecord] = ()) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_days(
                        employee_id, work_date,
                        facility_id, shift_id, scheduled_check_in, scheduled_check_out, check_in, check_out, status,
                        work_hours, net_work_hours, overtime, undertime, late_arrival, early_arrival, early_departure,
                        breaks, total_break_time, break_compliance, raw_audit, event_keys, needs_review, anomalies,
                        version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (int(day.employee_id), day.work_date, *_day_values(day)),
                )
                day.attendance_day_id = int(cur.lastrowid)
                self._insert_punches(cur, punches)
        except mysql.connector.Error as exc:
            if is_duplicate_key(exc):
                raise ConcurrencyConflict(
                    f"Attendance for employee {day.employee_id} on {day.work_date} was created concurrently"
                ) from exc
            raise
        return 1

    def update(self, day: AttendanceDay, punches: Sequence[PunchRecord] = ()) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_days
                SET facility_id=%s, shift_id=%s, scheduled_check_in=%s, scheduled_check_out=%s, check_in=%s,
                    check_out=%s, status=%s, work_hours=%s, net_work_hours=%s, overtime=%s, undertime=%s,
                    late_arrival=%s, early_arrival=%s, early_departure=%s, breaks=%s, total_break_time=%s,
                    break_compliance=%s, raw_audit=%s, event_keys=%s, needs_review=%s, anomalies=%s,
                    version=version+1
                WHERE employee_id=%s AND work_date=%s AND version=%s
                """,
                (*_day_values(day), int(day.employee_id), day.work_date, int(day.version)),
            )
            if cur.rowcount == 0:
                # Raising inside the block rolls the transaction back.
                raise ConcurrencyConflict(
                    f"Attendance for employee {day.employee_id} on {day.work_date} changed since version {day.version}"
                )
            self._insert_punches(cur, punches)
        return day.version + 1

    @staticmethod
    def _insert_punches(cur, punches: Sequence[PunchRecord]) -> None:
        if not punches:
            return
        cur.executemany(
            """
            INSERT INTO attendance_punches(
                employee_id, facility_id, work_date, kind, punched_at, status, shift_id, break_minutes
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            [
                (
                    int(p.employee_id),
                    int(p.facility_id),
                    p.work_date,
                    p.kind.value,
                    _naive(p.punched_at),
                    p.status.value,
                    p.shift_id,
                    int(p.break_minutes),
                )
                for p in punches
            ],
        )

    def _filters(self, prefix: str, start_date, end_date, facility_id, employee_id) -> tuple[str, list[object]]:
        clauses = [f"{prefix}work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]
        if facility_id is not None:
            clauses.append(f"{prefix}facility_id=%s")
            params.append(int(facility_id))
        if employee_id is not None:
            clauses.append(f"{prefix}employee_id=%s")
            params.append(int(employee_id))
        return " AND ".join(clauses), params

    def list_days(
        self,
        *,
        start_date: date,
        end_date: date,
        facility_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceDay]:
        where, params = self._filters("", start_date, end_date, facility_id, employee_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_DAY_COLUMNS} FROM attendance_days WHERE {where} ORDER BY work_date DESC, employee_id ASC",
                tuple(params),
            )
            return [_to_day(r) for r in fetchall(cur)]

    def list_punches(
        self,
        *,
        start_date: date,
        end_date: date,
        facility_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[PunchRecord]:
        where, params = self._filters("", start_date, end_date, facility_id, employee_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_id, facility_id, work_date, kind, punched_at, status, shift_id, break_minutes
                FROM attendance_punches
                WHERE {where}
                ORDER BY punched_at ASC, punch_id ASC
                """,
                tuple(params),
            )
            return [
                PunchRecord(
                    employee_id=int(r["employee_id"]),
                    facility_id=int(r["facility_id"]),
                    work_date=r["work_date"],
                    kind=PunchKind(r["kind"]),
                    punched_at=r["punched_at"],
                    status=AttendanceStatus(r["status"]),
                    shift_id=r.get("shift_id"),
                    break_minutes=int(r.get("break_minutes") or 0),
                )
                for r in fetchall(cur)
            ]

    def list_with_breaks(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 30,
    ) -> Sequence[AttendanceDay]:
        clauses = ["employee_id=%s", "JSON_LENGTH(breaks) > 0"]
        params: list[object] = [int(employee_id)]
        if start_date is not None and end_date is not None:
            clauses.append("work_date BETWEEN %s AND %s")
            params.extend([start_date, end_date])
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_DAY_COLUMNS} FROM attendance_days
                WHERE {' AND '.join(clauses)}
                ORDER BY work_date DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_day(r) for r in fetchall(cur)]
