from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..audit.model import SyncFailure
from ..audit.repository import SyncFailureRepository
from ..common.datetime_utils import now_local
from ..core.enums import SyncFailureType
from ..core.exceptions import DeviceUnavailable, IdentityResolutionError
from ..employees.repository import EmployeeRepository
from ..employees.resolver import IdentityResolver
from ..facilities.model import Facility
from ..facilities.repository import FacilityRepository
from .gateway import DeviceGatewayClient
from .normalizer import EMPTY_CARD_VALUES, first_present

logger = logging.getLogger(__name__)

_USER_ID_FIELDS = ("personUUID", "PersonUUID", "IdCard")
_USER_CARD_FIELDS = ("RFIDCard",)
_USER_NAME_FIELDS = ("Name", "name")
_USER_PICTURE_FIELDS = ("RegPicinfo",)


@dataclass(frozen=True)
class DirectorySyncResult:
    total: int = 0
    updated: int = 0
    unchanged: int = 0
    unmatched: int = 0


class DirectorySync:
    """Pulls the device user list and writes device identity back onto known employees.

    Only fills fields that are still empty; never creates employees. Users the
    directory does not know are recorded as employee_sync failures.
    """

    def __init__(
        self,
        gateway: DeviceGatewayClient,
        employees: EmployeeRepository,
        resolver: IdentityResolver,
        facilities: FacilityRepository,
        failures: SyncFailureRepository,
    ):
        self._gateway = gateway
        self._employees = employees
        self._resolver = resolver
        self._facilities = facilities
        self._failures = failures

    def sync_facility(self, facility: Facility) -> DirectorySyncResult:
        batch = self._gateway.fetch_directory(facility)
        if batch.device_id or batch.device_model:
            self._facilities.update_device_info(
                facility.facility_id, device_id=batch.device_id, device_model=batch.device_model
            )

        updated = unchanged = unmatched = 0
        for user in batch.records:
            identifier = first_present(user, _USER_ID_FIELDS)
            card = first_present(user, _USER_CARD_FIELDS)
            if card is not None and str(card).strip() in EMPTY_CARD_VALUES:
                card = None
            name = first_present(user, _USER_NAME_FIELDS)
            picture = first_present(user, _USER_PICTURE_FIELDS)

            try:
                employee, _ = self._resolver.find_employee(
                    facility_id=facility.facility_id,
                    identifier=str(identifier) if identifier is not None else None,
                    card_id=str(card) if card is not None else None,
                    name=str(name) if name is not None else None,
                )
            except IdentityResolutionError as exc:
                unmatched += 1
                self._record_unmatched(facility, identifier or card, name, str(exc))
                continue

            changes = {
                "device_id": _fill(employee.device_id, identifier),
                "card_id": _fill(employee.card_id, card),
                "profile_image": _fill(employee.profile_image, picture),
            }
            if any(v is not None for v in changes.values()):
                self._employees.update_device_identity(employee.employee_id, **changes)
                updated += 1
            else:
                unchanged += 1

        result = DirectorySyncResult(total=len(batch.records), updated=updated, unchanged=unchanged, unmatched=unmatched)
        logger.info(
            "Directory sync %s: %d users, %d updated, %d unmatched",
            facility.name,
            result.total,
            result.updated,
            result.unmatched,
        )
        return result

    def try_sync_facility(self, facility: Facility) -> Optional[DirectorySyncResult]:
        """Directory sync never blocks attendance sync; failures are only logged."""
        if not facility.user_api_url:
            return None
        try:
            return self.sync_facility(facility)
        except DeviceUnavailable as exc:
            logger.warning("Directory sync for %s failed: %s", facility.name, exc)
            return None
        except Exception:
            logger.exception("Directory write-back for %s failed; continuing with attendance", facility.name)
            return None

    def _record_unmatched(self, facility: Facility, ref, name, error: str) -> None:
        self._failures.record(
            SyncFailure(
                failure_type=SyncFailureType.EMPLOYEE_SYNC,
                facility_id=facility.facility_id,
                employee_ref=str(ref or "unknown"),
                full_name=str(name) if name else None,
                error=error,
                occurred_at=now_local(facility.timezone),
                metadata={"facility": facility.name},
            )
        )


def _fill(current: Optional[str], incoming) -> Optional[str]:
    if current or incoming is None:
        return None
    value = str(incoming).strip()
    return value or None
