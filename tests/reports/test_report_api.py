from dataclasses import dataclass
from datetime import date

import pytest

from src.attendance_reconciler.attendance_reconciler.core.enums import AttendanceStatus
from src.attendance_reconciler.attendance_reconciler.core.exceptions import ValidationError
from src.attendance_reconciler.attendance_reconciler.main import create_app
from src.attendance_reconciler.attendance_reconciler.reports.model import DayRow, ReportPage
from src.attendance_reconciler.attendance_reconciler.sync.scheduler import SyncRunSummary


class StubAggregator:
    def __init__(self):
        self.queries = []

    def build(self, query):
        self.queries.append(query)
        if query.end_date < query.start_date:
            raise ValidationError("end_date must not be before start_date")
        row = DayRow(employee_id=1, employee_name="Ada Obi", work_date=query.start_date, status=AttendanceStatus.ABSENT)
        return ReportPage(rows=[row], total=1, page=query.page, limit=query.limit, summary={"absent": 1})


class StubScheduler:
    def __init__(self, summary):
        self.summary = summary

    def run_once(self):
        return self.summary


@dataclass
class StubContainer:
    reporting_aggregator: StubAggregator
    sync_scheduler: StubScheduler
    break_service: object = None


@pytest.fixture()
def app_and_stubs(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    aggregator = StubAggregator()
    container = StubContainer(aggregator, StubScheduler(SyncRunSummary(started_at=None, skipped=True)))
    return create_app(container=container), container


def test_report_parses_filters(app_and_stubs):
    app, container = app_and_stubs

    resp = app.test_client().get(
        "/api/attendance?start_date=2025-03-01&end_date=2025-03-03&facility_id=2&status=late&page=2&limit=10"
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["rows"][0]["date"] == "2025-03-01"
    assert body["pagination"] == {"page": 2, "limit": 10, "total": 1, "pages": 1}
    query = container.reporting_aggregator.queries[0]
    assert query.facility_id == 2
    assert query.status == AttendanceStatus.LATE
    assert query.start_date == date(2025, 3, 1)


def test_report_rejects_bad_parameters(app_and_stubs):
    app, _ = app_and_stubs
    client = app.test_client()

    assert client.get("/api/attendance?status=sleeping").status_code == 400
    assert client.get("/api/attendance?start_date=yesterday").status_code == 400
    resp = client.get("/api/attendance?start_date=2025-03-05&end_date=2025-03-01")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "end_date must not be before start_date"


def test_sync_run_while_running_is_a_conflict(app_and_stubs):
    app, _ = app_and_stubs

    resp = app.test_client().post("/api/sync/run")

    assert resp.status_code == 409
