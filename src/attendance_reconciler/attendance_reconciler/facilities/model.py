from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_TIMEZONE, OFFLINE_NGROK_PATTERN, OFFLINE_PLACEHOLDER_HOSTS
from ..core.enums import SyncStatus

_NGROK = re.compile(OFFLINE_NGROK_PATTERN, re.IGNORECASE)


@dataclass(frozen=True)
class Facility:
    facility_id: int
    name: str
    device_api_url: Optional[str] = None
    user_api_url: Optional[str] = None
    device_api_key: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    auto_sync: bool = True
    status: str = "active"
    last_sync_time: Optional[datetime] = None
    sync_status: SyncStatus = SyncStatus.IDLE
    last_sync_error: Optional[str] = None
    device_id: Optional[str] = None
    device_model: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


def is_offline_endpoint(url: Optional[str]) -> bool:
    """True for missing URLs and known placeholder endpoints that never answer."""
    if not url or not isinstance(url, str):
        return True
    if _NGROK.search(url):
        return True
    return any(host in url for host in OFFLINE_PLACEHOLDER_HOSTS)
