from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import SyncFailureType


@dataclass(frozen=True)
class SyncFailure:
    """Operator-visible record of a device event or user the pipeline could not place."""

    failure_type: SyncFailureType
    employee_ref: str
    error: str
    occurred_at: datetime
    facility_id: Optional[int] = None
    full_name: Optional[str] = None
    source: str = "DEVICE_GATEWAY"
    resolved: bool = False
    metadata: dict = field(default_factory=dict)
