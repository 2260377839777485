from __future__ import annotations

from typing import Optional

from ..core.enums import BreakType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import BreakConfig, Shift
from .repository import ShiftRepository

_SHIFT_COLUMNS = """
    shift_id, facility_id, shift_name, start_time, end_time, grace_check_in, grace_check_out,
    working_hours, break_tracking_enabled, working_days
"""


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM shifts WHERE shift_id=%s", (int(shift_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._to_shift(cur, row)

    def get_default_for_facility(self, facility_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SHIFT_COLUMNS} FROM shifts WHERE facility_id=%s AND is_default=1 LIMIT 1",
                (int(facility_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return self._to_shift(cur, row)

    @staticmethod
    def _to_shift(cur, r: dict) -> Shift:
        cur.execute(
            """
            SELECT break_type, name, start_window, end_window, duration, max_duration, is_paid
            FROM shift_breaks
            WHERE shift_id=%s
            ORDER BY start_window
            """,
            (int(r["shift_id"]),),
        )
        breaks = tuple(
            BreakConfig(
                break_type=BreakType(b["break_type"]),
                name=b["name"],
                start_window=normalize_mysql_time(b["start_window"]),
                end_window=normalize_mysql_time(b["end_window"]),
                duration=int(b["duration"]),
                max_duration=int(b["max_duration"]),
                is_paid=bool(b["is_paid"]),
            )
            for b in fetchall(cur)
        )
        working_days = tuple(d.strip() for d in (r.get("working_days") or "").split(",") if d.strip())
        return Shift(
            shift_id=int(r["shift_id"]),
            shift_name=r["shift_name"],
            start_time=normalize_mysql_time(r["start_time"]),
            end_time=normalize_mysql_time(r["end_time"]),
            grace_check_in=int(r.get("grace_check_in") or 0),
            grace_check_out=int(r.get("grace_check_out") or 0),
            working_hours=float(r.get("working_hours") or 0),
            break_tracking_enabled=bool(r.get("break_tracking_enabled")),
            breaks=breaks,
            working_days=working_days,
            facility_id=r.get("facility_id"),
        )
