from datetime import datetime

import pytest

from src.attendance_reconciler.attendance_reconciler.core.exceptions import IdentityResolutionError, NoShiftAssignedError
from src.attendance_reconciler.attendance_reconciler.devices.normalizer import CanonicalEvent
from src.attendance_reconciler.attendance_reconciler.employees.model import Employee
from src.attendance_reconciler.attendance_reconciler.employees.resolver import IdentityResolver
from tests.fakes import InMemoryEmployees, InMemoryShifts, day_shift


def _resolver():
    employees = InMemoryEmployees(
        {
            1: Employee(employee_id=1, facility_id=1, first_name="Ada", device_id="u-1", card_id="100", shift_id=1),
            2: Employee(employee_id=2, facility_id=1, first_name="Bola", card_id="200", shift_id=1),
            3: Employee(employee_id=3, facility_id=2, first_name="Chidi", device_id="u-3", shift_id=1),
            4: Employee(employee_id=4, facility_id=1, first_name="Dayo", device_id="u-4"),
            5: Employee(employee_id=5, facility_id=2, first_name="Emeka", device_id="u-5"),
        }
    )
    return IdentityResolver(employees, InMemoryShifts({1: day_shift()}))


def _event(identifier=None, card_id=None, name="Unknown"):
    return CanonicalEvent(identifier=identifier, card_id=card_id, name=name, timestamp=datetime(2025, 3, 3, 9, 0))


def test_identifier_wins_over_card():
    resolved = _resolver().resolve(_event("u-1", "200"), facility_id=1)

    assert resolved.employee.employee_id == 1
    assert resolved.matched_by == "identifier"
    assert resolved.shift.shift_id == 1


def test_card_is_used_when_identifier_unknown():
    resolved = _resolver().resolve(_event("u-unknown", "200"), facility_id=1)

    assert resolved.employee.employee_id == 2
    assert resolved.matched_by == "card"


def test_first_name_prefix_is_the_last_resort():
    resolved = _resolver().resolve(_event("u-unknown", None, "bola tinubu"), facility_id=1)

    assert resolved.employee.employee_id == 2
    assert resolved.matched_by == "name"


def test_lookup_is_scoped_to_the_facility():
    with pytest.raises(IdentityResolutionError):
        _resolver().resolve(_event("u-3"), facility_id=1)


def test_unknown_name_never_matches():
    with pytest.raises(IdentityResolutionError):
        _resolver().resolve(_event(None, "999", "Unknown"), facility_id=1)


def test_employee_without_shift_falls_back_to_facility_default():
    resolved = _resolver().resolve(_event("u-4"), facility_id=1)

    assert resolved.shift.shift_id == 1


def test_employee_without_any_shift_is_reported():
    with pytest.raises(NoShiftAssignedError):
        _resolver().resolve(_event("u-5"), facility_id=2)
