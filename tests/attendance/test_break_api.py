from dataclasses import dataclass

import pytest

from src.attendance_reconciler.attendance_reconciler.core.exceptions import BreakProtocolViolation
from src.attendance_reconciler.attendance_reconciler.main import create_app


class StubBreakService:
    def __init__(self):
        self.calls = []

    def start_break(self, employee_id, break_type):
        self.calls.append(("start", employee_id, break_type))
        raise BreakProtocolViolation("Already checked out. Cannot start break.")

    def end_break(self, employee_id):
        self.calls.append(("end", employee_id))
        raise BreakProtocolViolation("No active break found")

    def get_break_status(self, employee_id):
        return {"onBreak": False, "availableBreaks": []}

    def get_break_history(self, employee_id, *, start=None, end=None):
        self.calls.append(("history", employee_id, start, end))
        return [{"date": "2025-03-03", "breaks": [], "totalBreakTime": 0}]


@dataclass
class StubContainer:
    break_service: StubBreakService
    reporting_aggregator: object = None
    sync_scheduler: object = None


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    stub = StubBreakService()
    app = create_app(container=StubContainer(break_service=stub))
    return app.test_client(), stub


def test_start_break_violation_is_a_400_with_message(client):
    http, stub = client

    resp = http.post("/api/breaks/start", json={"employee_id": 7, "break_type": "lunch"})

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Already checked out. Cannot start break."}
    assert stub.calls == [("start", 7, "lunch")]


def test_start_break_requires_fields(client):
    http, _ = client

    resp = http.post("/api/breaks/start", json={"employee_id": 7})

    assert resp.status_code == 400


def test_end_break_without_active_break(client):
    http, _ = client

    resp = http.post("/api/breaks/end", json={"employeeId": 7})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "No active break found"


def test_status_and_history(client):
    http, stub = client

    assert http.get("/api/breaks/status/7").get_json() == {"onBreak": False, "availableBreaks": []}
    resp = http.get("/api/breaks/history/7?start_date=2025-03-01&end_date=2025-03-03")

    assert resp.get_json()["totalRecords"] == 1
    assert stub.calls[-1][0] == "history"
    assert str(stub.calls[-1][2]) == "2025-03-01"


def test_history_rejects_bad_dates(client):
    http, _ = client

    assert http.get("/api/breaks/history/7?start_date=03/01/2025&end_date=2025-03-03").status_code == 400
