from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import requests

from ..core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from ..core.exceptions import DeviceTimeout, DeviceUnavailable
from ..facilities.model import Facility

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceBatch:
    """Records pulled from one gateway call plus the device identity it reported."""

    records: list[dict] = field(default_factory=list)
    device_id: Optional[str] = None
    device_model: Optional[str] = None


def _device_info(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise DeviceUnavailable("Gateway response is not a JSON object")
    info = (payload.get("device_response") or {}).get("info")
    if not isinstance(info, dict):
        raise DeviceUnavailable(f"Missing device_response.info; keys: {', '.join(payload) or '-'}")
    return info


def _batch(info: dict, records: list) -> DeviceBatch:
    device_id = info.get("DeviceID")
    return DeviceBatch(
        records=[r for r in records if isinstance(r, dict)],
        device_id=str(device_id) if device_id not in (None, "") else None,
        device_model=info.get("DeviceModel") or None,
    )


class DeviceGatewayClient:
    """HTTP client for the facility device gateway.

    Every call is bounded by ``timeout_seconds`` so one unreachable facility
    cannot hold a sync tick.
    """

    def __init__(self, *, timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        self._timeout = float(timeout_seconds)
        self._session = session or requests.Session()

    def _post(self, url: str, body: dict, api_key: Optional[str]) -> Any:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        try:
            response = self._session.post(url, json=body, headers=headers, timeout=self._timeout)
            response.raise_for_status()
            return response.json()
        except requests.Timeout as exc:
            raise DeviceTimeout(f"Gateway {url} timed out after {self._timeout:g}s") from exc
        except requests.HTTPError as exc:
            message = exc.response.text[:200] if exc.response is not None else str(exc)
            raise DeviceUnavailable(f"Gateway {url} answered {exc.response.status_code if exc.response is not None else '?'}: {message}") from exc
        except requests.RequestException as exc:
            raise DeviceUnavailable(f"Gateway {url} unreachable: {exc}") from exc
        except ValueError as exc:
            raise DeviceUnavailable(f"Gateway {url} returned invalid JSON") from exc

    def fetch_events(self, facility: Facility, *, window_start: datetime, window_end: datetime) -> DeviceBatch:
        if not facility.device_api_url:
            raise DeviceUnavailable(f"Facility {facility.name} has no device API URL")

        payload = self._post(
            facility.device_api_url,
            {"from": window_start.isoformat(), "to": window_end.isoformat()},
            facility.device_api_key,
        )
        info = _device_info(payload)
        records = info.get("SearchInfo")
        if not isinstance(records, list):
            raise DeviceUnavailable("Invalid attendance format: expected device_response.info.SearchInfo[]")

        logger.info("Gateway %s returned %d attendance records", facility.name, len(records))
        return _batch(info, records)

    def fetch_directory(self, facility: Facility) -> DeviceBatch:
        if not facility.user_api_url:
            raise DeviceUnavailable(f"Facility {facility.name} has no user API URL")

        info = _device_info(self._post(facility.user_api_url, {}, facility.device_api_key))
        # Older firmware returns the user list in the attendance-shaped key.
        for key in ("List", "SearchInfo"):
            if isinstance(info.get(key), list):
                return _batch(info, info[key])
        raise DeviceUnavailable(f"No user list in directory response; keys: {', '.join(info) or '-'}")
