from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Directory entry as seen by the reconciliation pipeline."""

    employee_id: int
    facility_id: int
    first_name: str
    last_name: str = ""
    device_id: Optional[str] = None
    card_id: Optional[str] = None
    profile_image: Optional[str] = None
    shift_id: Optional[int] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
