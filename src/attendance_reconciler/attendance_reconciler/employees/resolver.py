from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.constants import UNKNOWN_NAME
from ..core.exceptions import IdentityResolutionError, NoShiftAssignedError
from ..devices.normalizer import CanonicalEvent
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedIdentity:
    employee: Employee
    shift: Shift
    matched_by: str


class IdentityResolver:
    """Maps a canonical event to an employee of one facility and that employee's shift.

    Lookup order: device identifier, then card id, then a case-insensitive
    first-name prefix. The name fallback exists for devices that only report a
    display name; "Unknown" never matches.
    """

    def __init__(self, employees: EmployeeRepository, shifts: ShiftRepository):
        self._employees = employees
        self._shifts = shifts

    def find_employee(self, *, facility_id: int, identifier=None, card_id=None, name=None) -> tuple[Employee, str]:
        if identifier:
            emp = self._employees.find_by_device_id(facility_id, identifier)
            if emp:
                return emp, "identifier"
        if card_id:
            emp = self._employees.find_by_card_id(facility_id, card_id)
            if emp:
                return emp, "card"
        if name and name != UNKNOWN_NAME:
            first = name.split()[0] if name.split() else ""
            if first:
                emp = self._employees.find_by_name_prefix(facility_id, first)
                if emp:
                    return emp, "name"
        raise IdentityResolutionError(
            f"No employee in facility {facility_id} for identifier={identifier!r} card={card_id!r} name={name!r}"
        )

    def resolve(self, event: CanonicalEvent, *, facility_id: int) -> ResolvedIdentity:
        employee, matched_by = self.find_employee(
            facility_id=facility_id,
            identifier=event.identifier,
            card_id=event.card_id,
            name=event.name,
        )

        shift = self._shifts.get_by_id(employee.shift_id) if employee.shift_id else None
        if shift is None:
            shift = self._shifts.get_default_for_facility(employee.facility_id)
        if shift is None:
            raise NoShiftAssignedError(f"No shift assigned to {employee.full_name} (employee {employee.employee_id})")

        logger.debug("Resolved %s to employee %s via %s", event.identifier or event.card_id, employee.employee_id, matched_by)
        return ResolvedIdentity(employee=employee, shift=shift, matched_by=matched_by)
