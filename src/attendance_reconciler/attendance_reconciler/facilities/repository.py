from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SyncStatus
from .model import Facility


class FacilityRepository(Protocol):
    def get_by_id(self, facility_id: int) -> Optional[Facility]:
        raise NotImplementedError

    def list_syncable(self) -> Sequence[Facility]:
        """Active facilities with auto-sync enabled."""

        raise NotImplementedError

    def update_sync_status(
        self,
        facility_id: int,
        status: SyncStatus,
        *,
        error_message: Optional[str] = None,
        last_sync_time: Optional[datetime] = None,
    ) -> bool:
        """Record the outcome of a sync; last_sync_time is only moved when given."""

        raise NotImplementedError

    def update_device_info(
        self,
        facility_id: int,
        *,
        device_id: Optional[str] = None,
        device_model: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError
