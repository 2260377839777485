from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Read access to the employee directory, scoped by facility for lookups."""

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_device_id(self, facility_id: int, device_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_card_id(self, facility_id: int, card_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_name_prefix(self, facility_id: int, prefix: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_active(
        self,
        *,
        facility_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def update_device_identity(
        self,
        employee_id: int,
        *,
        device_id: Optional[str] = None,
        card_id: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> bool:
        """Directory-sync write-back; None leaves a field untouched."""

        raise NotImplementedError
