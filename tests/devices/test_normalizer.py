from datetime import datetime, timezone

import pytest

from src.attendance_reconciler.attendance_reconciler.core.exceptions import NormalizationError
from src.attendance_reconciler.attendance_reconciler.devices.normalizer import EventNormalizer, parse_device_timestamp


def test_identifier_and_card_are_read_from_known_variants():
    event = EventNormalizer().normalize(
        {"PersonUUID": "u-17", "RFIDCard": "55501", "Name": "Ada Obi", "Time": "2025-03-03 08:55:00"}
    )

    assert event.identifier == "u-17"
    assert event.card_id == "55501"
    assert event.name == "Ada Obi"
    assert event.timestamp == datetime(2025, 3, 3, 8, 55)


def test_placeholder_card_counts_as_missing():
    event = EventNormalizer().normalize({"personId": "42", "RFIDCard": "0", "time": "2025-03-03T08:55:00"})

    assert event.card_id is None
    assert event.identifier == "42"
    assert event.name == "Unknown"


def test_card_only_record_is_accepted():
    event = EventNormalizer().normalize({"cardNumber": "9001", "checkTime": "2025-03-03 17:02"})

    assert event.identifier is None
    assert event.card_id == "9001"


def test_record_without_identity_is_rejected():
    with pytest.raises(NormalizationError):
        EventNormalizer().normalize({"Name": "Nobody", "Time": "2025-03-03 08:55:00", "RFIDCard": "0"})


def test_record_without_timestamp_is_rejected():
    with pytest.raises(NormalizationError):
        EventNormalizer().normalize({"personUUID": "u-1"})


def test_unparseable_timestamp_is_rejected():
    with pytest.raises(NormalizationError):
        EventNormalizer().normalize({"personUUID": "u-1", "Time": "not a time"})


def test_epoch_seconds_and_millis_are_both_understood():
    expected = datetime(2025, 3, 3, 7, 55, tzinfo=timezone.utc)
    seconds = int(expected.timestamp())

    assert parse_device_timestamp(seconds) == expected
    assert parse_device_timestamp(seconds * 1000) == expected
    assert parse_device_timestamp(str(seconds)) == expected


def test_extra_field_variants_come_from_configuration():
    normalizer = EventNormalizer({"identifier": ["staffCode"], "timestamp": ["punchedAt"]})

    event = normalizer.normalize({"staffCode": "S-9", "punchedAt": "2025-03-03 09:10"})

    assert event.identifier == "S-9"
    assert normalizer.field_variants["identifier"][-1] == "staffCode"
    assert normalizer.field_variants["identifier"][0] == "personUUID"


def test_batch_drops_bad_records_and_keeps_the_rest():
    events, dropped = EventNormalizer().normalize_batch(
        [
            {"personUUID": "u-1", "Time": "2025-03-03 08:55"},
            {"Name": "no id", "Time": "2025-03-03 08:56"},
            "garbage",
            {"personUUID": "u-2", "Time": "2025-03-03 08:57"},
        ]
    )

    assert [e.identifier for e in events] == ["u-1", "u-2"]
    assert dropped == 2


def test_fingerprint_ignores_raw_payload_noise():
    a = EventNormalizer().normalize({"personUUID": "u-1", "Time": "2025-03-03 08:55", "Temp": "36.5"})
    b = EventNormalizer().normalize({"PersonUUID": "u-1", "time": "2025-03-03 08:55"})

    assert a.fingerprint == b.fingerprint
    assert a == b
