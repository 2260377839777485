from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = "employee_id, facility_id, first_name, last_name, device_id, card_id, profile_image, shift_id, is_active"


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        facility_id=int(r["facility_id"]),
        first_name=r["first_name"],
        last_name=r.get("last_name") or "",
        device_id=r.get("device_id"),
        card_id=r.get("card_id"),
        profile_image=r.get("profile_image"),
        shift_id=r.get("shift_id"),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE {where} ORDER BY employee_id LIMIT 1", params)
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._one("employee_id=%s", (int(employee_id),))

    def find_by_device_id(self, facility_id: int, device_id: str) -> Optional[Employee]:
        return self._one("facility_id=%s AND device_id=%s", (int(facility_id), str(device_id)))

    def find_by_card_id(self, facility_id: int, card_id: str) -> Optional[Employee]:
        return self._one("facility_id=%s AND card_id=%s", (int(facility_id), str(card_id)))

    def find_by_name_prefix(self, facility_id: int, prefix: str) -> Optional[Employee]:
        # utf8mb4_unicode_ci collation makes LIKE case-insensitive.
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return self._one("facility_id=%s AND first_name LIKE %s", (int(facility_id), f"{escaped}%"))

    def list_active(
        self,
        *,
        facility_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[Employee]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if facility_id is not None:
            clauses.append("facility_id=%s")
            params.append(int(facility_id))
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE {' AND '.join(clauses)} ORDER BY employee_id",
                tuple(params),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def update_device_identity(
        self,
        employee_id: int,
        *,
        device_id: Optional[str] = None,
        card_id: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> bool:
        sets: list[str] = []
        params: list[object] = []
        for column, value in (("device_id", device_id), ("card_id", card_id), ("profile_image", profile_image)):
            if value is not None:
                sets.append(f"{column}=%s")
                params.append(value)
        if not sets:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE employees SET {', '.join(sets)} WHERE employee_id=%s", (*params, int(employee_id)))
            return cur.rowcount > 0
