from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ApprovedLeave
from .repository import LATE_ARRIVAL_EXCUSE, LeaveRepository

_COLUMNS = "leave_id, employee_id, start_date, end_date, leave_type, is_half_day, excuse_type, reason"


def _to_leave(r: dict) -> ApprovedLeave:
    return ApprovedLeave(
        leave_id=int(r["leave_id"]),
        employee_id=int(r["employee_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        leave_type=r["leave_type"],
        is_half_day=bool(r.get("is_half_day")),
        excuse_type=r.get("excuse_type"),
        reason=r.get("reason"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_approved(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[ApprovedLeave]:
        clauses = ["start_date <= %s", "end_date >= %s", "excuse_type IS NULL"]
        params: list[object] = [end_date, start_date]
        if employee_ids is not None:
            if not employee_ids:
                return []
            clauses.append(f"employee_id IN ({', '.join(['%s'] * len(employee_ids))})")
            params.extend(int(e) for e in employee_ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM approved_leaves WHERE {' AND '.join(clauses)} ORDER BY employee_id, start_date",
                tuple(params),
            )
            return [_to_leave(r) for r in fetchall(cur)]

    def find_excuse(self, employee_id: int, day: date, excuse_type: str = LATE_ARRIVAL_EXCUSE) -> Optional[ApprovedLeave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM approved_leaves
                WHERE employee_id=%s AND excuse_type=%s AND start_date <= %s AND end_date >= %s
                LIMIT 1
                """,
                (int(employee_id), excuse_type, day, day),
            )
            row = fetchone(cur)
            return _to_leave(row) if row else None
