from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from dateutil import parser as date_parser

from ..core.constants import UNKNOWN_NAME
from ..core.exceptions import NormalizationError

logger = logging.getLogger(__name__)

# Ordered candidates per canonical attribute. Device firmware renames fields
# between versions and vendors; new variants are added here, not in code paths.
DEFAULT_FIELD_VARIANTS: dict[str, tuple[str, ...]] = {
    "identifier": ("personUUID", "PersonUUID", "personId", "PersonId", "deviceId", "IdCard", "id"),
    "card_id": ("RFIDCard", "rfidCard", "IdCard", "idCard", "cardId", "cardNumber"),
    "name": ("Name", "name", "personName", "PersonName", "userName"),
    "timestamp": ("Time", "time", "timestamp", "checkTime", "datetime"),
}

# Values devices send for "no card enrolled".
EMPTY_CARD_VALUES = frozenset({"0"})

# Anything above this is taken as epoch milliseconds (year 5138 in seconds).
_EPOCH_MILLIS_FLOOR = 100_000_000_000


@dataclass(frozen=True)
class CanonicalEvent:
    identifier: Optional[str]
    card_id: Optional[str]
    name: str
    timestamp: datetime
    raw_payload: dict = field(default_factory=dict, compare=False)

    @property
    def fingerprint(self) -> str:
        """Stable key of one device punch, used to make replays no-ops."""
        return f"{self.identifier or ''}|{self.card_id or ''}|{self.timestamp.isoformat()}"


def first_present(record: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    for key in candidates:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def parse_device_timestamp(value: Any) -> datetime:
    """Parse device time values: datetime, epoch seconds/millis, or a date string.

    Epoch values come back aware (UTC); strings keep whatever offset they carry,
    naive ones stay naive and are later read as facility local time.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise NormalizationError(f"Invalid timestamp: {value!r}")

    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value >= _EPOCH_MILLIS_FLOOR else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise NormalizationError(f"Invalid timestamp: {value!r}") from exc

    if isinstance(value, str):
        try:
            return date_parser.parse(value.strip())
        except (ValueError, OverflowError) as exc:
            raise NormalizationError(f"Invalid timestamp: {value!r}") from exc

    raise NormalizationError(f"Invalid timestamp: {value!r}")


class EventNormalizer:
    """Converts a raw gateway record into a CanonicalEvent."""

    def __init__(self, field_variants: Optional[Mapping[str, Sequence[str]]] = None):
        variants = {k: tuple(v) for k, v in DEFAULT_FIELD_VARIANTS.items()}
        for attribute, names in (field_variants or {}).items():
            # Extra names are tried after the known ones.
            known = variants.get(attribute, ())
            variants[attribute] = known + tuple(n for n in names if n not in known)
        self._variants = variants

    @property
    def field_variants(self) -> Mapping[str, tuple[str, ...]]:
        return dict(self._variants)

    def normalize(self, record: Mapping[str, Any]) -> CanonicalEvent:
        if not isinstance(record, Mapping):
            raise NormalizationError(f"Device record is not an object: {type(record).__name__}")

        identifier = first_present(record, self._variants["identifier"])
        card_id = first_present(record, self._variants["card_id"])
        if card_id is not None and str(card_id).strip() in EMPTY_CARD_VALUES:
            card_id = None

        if identifier is None and card_id is None:
            raise NormalizationError(
                f"Missing identification fields; available keys: {', '.join(sorted(map(str, record))) or '-'}"
            )

        raw_ts = first_present(record, self._variants["timestamp"])
        if raw_ts is None:
            raise NormalizationError("Missing timestamp field")

        name = first_present(record, self._variants["name"])
        return CanonicalEvent(
            identifier=str(identifier).strip() if identifier is not None else None,
            card_id=str(card_id).strip() if card_id is not None else None,
            name=str(name).strip() if name is not None else UNKNOWN_NAME,
            timestamp=parse_device_timestamp(raw_ts),
            raw_payload=dict(record),
        )

    def normalize_batch(self, records: Sequence[Mapping[str, Any]]) -> tuple[list[CanonicalEvent], int]:
        """Normalize what can be normalized; bad records are logged and counted, never raised."""
        events: list[CanonicalEvent] = []
        dropped = 0
        for record in records:
            try:
                events.append(self.normalize(record))
            except NormalizationError as exc:
                dropped += 1
                logger.warning("Dropping device record: %s | raw=%r", exc, record)
        return events, dropped
