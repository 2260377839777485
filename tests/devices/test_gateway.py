from datetime import datetime, timezone

import pytest
import requests

from src.attendance_reconciler.attendance_reconciler.core.exceptions import DeviceTimeout, DeviceUnavailable
from src.attendance_reconciler.attendance_reconciler.devices.gateway import DeviceGatewayClient
from tests.fakes import facility


class FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, outcome):
        self.outcome = outcome
        self.requests: list[dict] = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


WINDOW = dict(
    window_start=datetime(2025, 3, 2, 8, 0, tzinfo=timezone.utc),
    window_end=datetime(2025, 3, 3, 8, 0, tzinfo=timezone.utc),
)


def test_fetch_events_posts_window_with_bearer_key_and_timeout():
    session = FakeSession(
        FakeResponse(
            {
                "device_response": {
                    "info": {
                        "DeviceID": "D-1",
                        "DeviceModel": "XO5",
                        "SearchInfo": [{"personUUID": "u-1", "Time": "2025-03-03 08:55"}],
                    }
                }
            }
        )
    )
    client = DeviceGatewayClient(timeout_seconds=30, session=session)

    batch = client.fetch_events(facility(), **WINDOW)

    sent = session.requests[0]
    assert sent["headers"]["Authorization"] == "Bearer key"
    assert sent["timeout"] == 30
    assert sent["json"] == {"from": WINDOW["window_start"].isoformat(), "to": WINDOW["window_end"].isoformat()}
    assert batch.records == [{"personUUID": "u-1", "Time": "2025-03-03 08:55"}]
    assert batch.device_id == "D-1"
    assert batch.device_model == "XO5"


def test_timeout_is_reported_as_device_timeout():
    client = DeviceGatewayClient(session=FakeSession(requests.Timeout("slow")))

    with pytest.raises(DeviceTimeout):
        client.fetch_events(facility(), **WINDOW)


def test_response_without_search_info_is_unavailable():
    client = DeviceGatewayClient(session=FakeSession(FakeResponse({"device_response": {"info": {"List": []}}})))

    with pytest.raises(DeviceUnavailable):
        client.fetch_events(facility(), **WINDOW)


def test_http_error_is_unavailable():
    client = DeviceGatewayClient(session=FakeSession(FakeResponse({"error": "down"}, status_code=502)))

    with pytest.raises(DeviceUnavailable):
        client.fetch_events(facility(), **WINDOW)


def test_directory_accepts_list_or_search_info():
    users = [{"personUUID": "u-1", "Name": "Ada"}]
    for key in ("List", "SearchInfo"):
        session = FakeSession(FakeResponse({"device_response": {"info": {key: users}}}))
        client = DeviceGatewayClient(session=session)

        batch = client.fetch_directory(facility(user_api_url="https://gw1.example.org/users"))

        assert batch.records == users
