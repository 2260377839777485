from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..attendance.classifier import Duplicate, Rejected
from ..attendance.service import ReconciliationService
from ..audit.model import SyncFailure
from ..audit.repository import SyncFailureRepository
from ..common.datetime_utils import to_zone
from ..core.constants import DEFAULT_SYNC_LOOKBACK_HOURS
from ..core.enums import SyncFailureType, SyncStatus
from ..core.exceptions import ConcurrencyConflict, DomainError, IdentityResolutionError, NoShiftAssignedError
from ..devices.directory import DirectorySync
from ..devices.gateway import DeviceGatewayClient
from ..devices.normalizer import CanonicalEvent, EventNormalizer
from ..employees.resolver import IdentityResolver, ResolvedIdentity
from ..facilities.model import Facility, is_offline_endpoint
from ..facilities.repository import FacilityRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacilitySyncResult:
    facility_id: int
    facility_name: str
    status: SyncStatus
    fetched: int = 0
    dropped: int = 0
    unresolved: int = 0
    applied: int = 0
    duplicates: int = 0
    rejected: int = 0
    conflicts: int = 0
    error: Optional[str] = None
    retry_from: Optional[datetime] = None


class FacilitySyncService:
    """One sync pass for one facility: pull, normalize, resolve, reconcile."""

    def __init__(
        self,
        facilities: FacilityRepository,
        gateway: DeviceGatewayClient,
        normalizer: EventNormalizer,
        resolver: IdentityResolver,
        reconciliation: ReconciliationService,
        failures: SyncFailureRepository,
        directory: Optional[DirectorySync] = None,
        *,
        lookback_hours: int = DEFAULT_SYNC_LOOKBACK_HOURS,
    ):
        self._facilities = facilities
        self._gateway = gateway
        self._normalizer = normalizer
        self._resolver = resolver
        self._reconciliation = reconciliation
        self._failures = failures
        self._directory = directory
        self._lookback = timedelta(hours=int(lookback_hours))

    def sync_facility(self, facility: Facility, *, now: Optional[datetime] = None) -> FacilitySyncResult:
        if is_offline_endpoint(facility.device_api_url):
            logger.info("Skipping %s: device endpoint is offline or a placeholder", facility.name)
            self._facilities.update_sync_status(
                facility.facility_id, SyncStatus.SKIPPED, error_message="Device endpoint offline or not configured"
            )
            return FacilitySyncResult(facility.facility_id, facility.name, SyncStatus.SKIPPED)

        self._facilities.update_sync_status(facility.facility_id, SyncStatus.IN_PROGRESS)
        window_end = now or datetime.now(timezone.utc)
        window_start = facility.last_sync_time or (window_end - self._lookback)

        try:
            if self._directory is not None:
                self._directory.try_sync_facility(facility)

            batch = self._gateway.fetch_events(facility, window_start=window_start, window_end=window_end)
            if batch.device_id or batch.device_model:
                self._facilities.update_device_info(
                    facility.facility_id, device_id=batch.device_id, device_model=batch.device_model
                )
            result = self._reconcile(facility, batch.records)
        except DomainError as exc:
            logger.error("Sync failed for %s: %s", facility.name, exc)
            self._facilities.update_sync_status(facility.facility_id, SyncStatus.FAILED, error_message=str(exc))
            return FacilitySyncResult(facility.facility_id, facility.name, SyncStatus.FAILED, error=str(exc))
        except Exception as exc:
            self._facilities.update_sync_status(facility.facility_id, SyncStatus.FAILED, error_message=str(exc))
            raise

        # Punches dropped on a conflict must fall inside the next window.
        cursor = min(result.retry_from, window_end) if result.retry_from else window_end
        self._facilities.update_sync_status(facility.facility_id, SyncStatus.SUCCESS, last_sync_time=cursor)
        logger.info(
            "Synced %s: %d fetched, %d applied, %d duplicates, %d dropped, %d unresolved, %d conflicts",
            facility.name,
            result.fetched,
            result.applied,
            result.duplicates,
            result.dropped,
            result.unresolved,
            result.conflicts,
        )
        return result

    def _reconcile(self, facility: Facility, records: list[dict]) -> FacilitySyncResult:
        events, dropped = self._normalizer.normalize_batch(records)

        per_employee: dict[int, list[tuple[CanonicalEvent, ResolvedIdentity]]] = defaultdict(list)
        unresolved = 0
        for event in events:
            try:
                identity = self._resolver.resolve(event, facility_id=facility.facility_id)
            except (IdentityResolutionError, NoShiftAssignedError) as exc:
                unresolved += 1
                logger.warning("Unresolved punch in %s: %s", facility.name, exc)
                self._record_failure(facility, event, str(exc))
                continue
            per_employee[identity.employee.employee_id].append((event, identity))

        applied = duplicates = rejected = conflicts = 0
        retry_from: Optional[datetime] = None
        for employee_id in sorted(per_employee):
            # Events of one employee are applied in time order so check-in lands before check-out.
            ordered = sorted(
                per_employee[employee_id],
                key=lambda pair: (to_zone(pair[0].timestamp, facility.timezone), pair[0].fingerprint),
            )
            for event, identity in ordered:
                try:
                    outcome = self._reconciliation.apply_event(event, identity, facility)
                except ConcurrencyConflict as exc:
                    conflicts += 1
                    logger.error("Deferring punch for employee %s to the next sync: %s", employee_id, exc)
                    self._record_failure(facility, event, f"Concurrent update, retried next sync: {exc}")
                    at = to_zone(event.timestamp, facility.timezone).astimezone(timezone.utc)
                    retry_from = at if retry_from is None else min(retry_from, at)
                    continue
                if isinstance(outcome.classification, Duplicate):
                    duplicates += 1
                elif isinstance(outcome.classification, Rejected):
                    rejected += 1
                else:
                    applied += 1

        return FacilitySyncResult(
            facility_id=facility.facility_id,
            facility_name=facility.name,
            status=SyncStatus.SUCCESS,
            fetched=len(records),
            dropped=dropped,
            unresolved=unresolved,
            applied=applied,
            duplicates=duplicates,
            rejected=rejected,
            conflicts=conflicts,
            retry_from=retry_from,
        )

    def _record_failure(self, facility: Facility, event: CanonicalEvent, error: str) -> None:
        self._failures.record(
            SyncFailure(
                failure_type=SyncFailureType.ATTENDANCE_SYNC,
                facility_id=facility.facility_id,
                employee_ref=event.identifier or event.card_id or "unknown",
                full_name=event.name,
                error=error,
                occurred_at=to_zone(event.timestamp, facility.timezone),
                metadata={"facility": facility.name, "raw": event.raw_payload},
            )
        )
