from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import SyncStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Facility
from .repository import FacilityRepository

_COLUMNS = """
    facility_id, name, status, auto_sync, device_api_url, user_api_url, device_api_key, timezone,
    last_sync_time, sync_status, last_sync_error, device_id, device_model
"""


def _to_facility(r: dict, default_timezone: str = DEFAULT_TIMEZONE) -> Facility:
    last_sync = r.get("last_sync_time")
    if last_sync is not None and last_sync.tzinfo is None:
        # Stored as UTC.
        last_sync = last_sync.replace(tzinfo=timezone.utc)
    return Facility(
        facility_id=int(r["facility_id"]),
        name=r["name"],
        status=r.get("status") or "active",
        auto_sync=bool(r.get("auto_sync")),
        device_api_url=r.get("device_api_url"),
        user_api_url=r.get("user_api_url"),
        device_api_key=r.get("device_api_key"),
        timezone=r.get("timezone") or default_timezone,
        last_sync_time=last_sync,
        sync_status=SyncStatus(r.get("sync_status") or SyncStatus.IDLE.value),
        last_sync_error=r.get("last_sync_error"),
        device_id=r.get("device_id"),
        device_model=r.get("device_model"),
    )


class MySQLFacilityRepository(FacilityRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, default_timezone: str = DEFAULT_TIMEZONE):
        self._conn_factory = conn_factory
        self._default_timezone = default_timezone

    def get_by_id(self, facility_id: int) -> Optional[Facility]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM facilities WHERE facility_id=%s", (int(facility_id),))
            row = fetchone(cur)
            return _to_facility(row, self._default_timezone) if row else None

    def list_syncable(self) -> Sequence[Facility]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM facilities WHERE status='active' AND auto_sync=1 ORDER BY facility_id"
            )
            return [_to_facility(r, self._default_timezone) for r in fetchall(cur)]

    def update_sync_status(
        self,
        facility_id: int,
        status: SyncStatus,
        *,
        error_message: Optional[str] = None,
        last_sync_time: Optional[datetime] = None,
    ) -> bool:
        sets = ["sync_status=%s", "last_sync_error=%s"]
        params: list[object] = [status.value, error_message]
        if last_sync_time is not None:
            sets.append("last_sync_time=%s")
            params.append(last_sync_time.astimezone(timezone.utc).replace(tzinfo=None))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE facilities SET {', '.join(sets)} WHERE facility_id=%s", (*params, int(facility_id)))
            return cur.rowcount > 0

    def update_device_info(
        self,
        facility_id: int,
        *,
        device_id: Optional[str] = None,
        device_model: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE facilities
                SET device_id=COALESCE(%s, device_id), device_model=COALESCE(%s, device_model)
                WHERE facility_id=%s
                """,
                (device_id, device_model, int(facility_id)),
            )
            return cur.rowcount > 0
