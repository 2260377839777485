from __future__ import annotations

from datetime import timezone
from typing import Optional, Sequence

from ..core.enums import SyncFailureType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dumps_json, fetchall, loads_json
from .model import SyncFailure
from .repository import SyncFailureRepository


class MySQLSyncFailureRepository(SyncFailureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, failure: SyncFailure) -> int:
        occurred = failure.occurred_at
        if occurred.tzinfo is not None:
            occurred = occurred.astimezone(timezone.utc).replace(tzinfo=None)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sync_failures(
                    failure_type, facility_id, employee_ref, full_name, error, occurred_at, source, resolved, metadata
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    failure.failure_type.value,
                    failure.facility_id,
                    failure.employee_ref,
                    failure.full_name,
                    failure.error,
                    occurred,
                    failure.source,
                    int(failure.resolved),
                    dumps_json(failure.metadata),
                ),
            )
            return int(cur.lastrowid)

    def list_unresolved(self, *, failure_type: Optional[SyncFailureType] = None, limit: int = 200) -> Sequence[SyncFailure]:
        clauses = ["resolved=0"]
        params: list[object] = []
        if failure_type is not None:
            clauses.append("failure_type=%s")
            params.append(failure_type.value)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT failure_type, facility_id, employee_ref, full_name, error, occurred_at, source, resolved, metadata
                FROM sync_failures
                WHERE {' AND '.join(clauses)}
                ORDER BY occurred_at DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [
                SyncFailure(
                    failure_type=SyncFailureType(r["failure_type"]),
                    facility_id=r.get("facility_id"),
                    employee_ref=r["employee_ref"],
                    full_name=r.get("full_name"),
                    error=r["error"],
                    occurred_at=r["occurred_at"].replace(tzinfo=timezone.utc),
                    source=r.get("source") or "DEVICE_GATEWAY",
                    resolved=bool(r.get("resolved")),
                    metadata=loads_json(r.get("metadata"), {}),
                )
                for r in fetchall(cur)
            ]
