"""Unit tests for the event envelope codec."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import uuid
import pytest
from datetime import datetime, timezone
from app.services.event_codec import (
    EVENT_TYPES,
    EventEnvelope,
    MalformedEvent,
    decode_event,
    decode_metadata,
    encode_event,
)
from app.schemas.camera_events import (
    CameraRegisteredEvent,
    CameraUpdatedEvent,
    ConfigChangedEvent,
    MotionDetectedEvent,
)

CAMERA_ID = uuid.UUID("6f1c2a52-8a0e-4f0b-9a57-2f0d1c9e3b11")
NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def make_envelope(event_type, data, metadata=b"{}"):
    return EventEnvelope(event_id=uuid.uuid4(), event_type=event_type, data=data, metadata=metadata)


class TestEncode:
    def test_type_tag_and_camel_case_payload(self):
        event = CameraRegisteredEvent(camera_id=CAMERA_ID, location="Lobby", model="X100",
                                      ip_address="10.0.0.1", timestamp=NOW)
        envelope = encode_event(event)

        assert envelope.event_type == "CameraRegisteredEvent"
        payload = json.loads(envelope.data)
        assert payload["cameraId"] == str(CAMERA_ID)
        assert payload["ipAddress"] == "10.0.0.1"
        assert payload["location"] == "Lobby"
        assert "ip_address" not in payload

    def test_metadata_carries_capture_timestamp(self):
        event = MotionDetectedEvent(camera_id=CAMERA_ID, timestamp_utc=NOW, area="gate", sensitivity="high")
        envelope = encode_event(event, captured_at=NOW)
        assert json.loads(envelope.metadata) == {"timestamp": NOW.isoformat()}

    def test_each_encode_gets_a_fresh_event_id(self):
        event = MotionDetectedEvent(camera_id=CAMERA_ID, timestamp_utc=NOW, area="gate", sensitivity="high")
        first, second = encode_event(event), encode_event(event)
        assert first.event_id != second.event_id
        assert first.data == second.data

    def test_telemetry_uses_timestamp_utc_field(self):
        event = ConfigChangedEvent(camera_id=CAMERA_ID, timestamp_utc=NOW,
                                   changes={"fps": 25, "hdr": True}, changed_by="ops")
        payload = json.loads(encode_event(event).data)
        assert "timestampUtc" in payload
        assert payload["changes"] == {"fps": 25, "hdr": True}
        assert payload["changedBy"] == "ops"

    def test_registry_knows_every_event_kind(self):
        assert set(EVENT_TYPES) == {
            "CameraRegisteredEvent", "CameraUpdatedEvent", "CameraDecommissionedEvent",
            "MotionDetectedEvent", "StreamOnEvent", "StreamOffEvent",
            "AlarmOnEvent", "AlarmOffEvent", "ConfigChangedEvent",
        }


class TestDecode:
    def test_decodes_encoded_update_with_absent_fields(self):
        event = CameraUpdatedEvent(camera_id=CAMERA_ID, model="X200", timestamp=NOW)
        decoded = decode_event(encode_event(event))

        assert isinstance(decoded, CameraUpdatedEvent)
        assert decoded.model == "X200"
        assert decoded.location is None
        assert decoded.is_active is None

    def test_empty_string_is_kept_as_a_value(self):
        event = CameraUpdatedEvent(camera_id=CAMERA_ID, location="", timestamp=NOW)
        assert decode_event(encode_event(event)).location == ""

    def test_unknown_type_decodes_to_none(self):
        envelope = make_envelope("CameraRenamedEvent", b'{"name": "front door"}')
        assert decode_event(envelope) is None

    def test_type_match_is_exact(self):
        envelope = make_envelope("cameraregisteredevent", b"{}")
        assert decode_event(envelope) is None

    def test_missing_fields_raise_malformed(self):
        envelope = make_envelope("CameraRegisteredEvent", json.dumps({
            "cameraId": str(CAMERA_ID), "location": "Lobby",
        }).encode())
        with pytest.raises(MalformedEvent) as exc:
            decode_event(envelope)
        assert exc.value.event_type == "CameraRegisteredEvent"
        assert exc.value.event_id == envelope.event_id

    def test_invalid_json_raises_malformed(self):
        envelope = make_envelope("CameraDecommissionedEvent", b"{not json")
        with pytest.raises(MalformedEvent):
            decode_event(envelope)

    def test_accepts_payload_written_by_other_clients(self):
        # Extra keys are ignored; the original .NET writer used the same camelCase names
        envelope = make_envelope("StreamOffEvent", json.dumps({
            "cameraId": str(CAMERA_ID),
            "timestampUtc": "2026-10-18T09:30:00Z",
            "reason": "maintenance",
            "operatorNote": "scheduled",
        }).encode())
        decoded = decode_event(envelope)
        assert decoded.reason == "maintenance"
        assert decoded.timestamp_utc == NOW


class TestMetadata:
    def test_decodes_object(self):
        envelope = make_envelope("StreamOnEvent", b"{}", b'{"timestamp": "2026-10-18T09:30:00+00:00"}')
        assert decode_metadata(envelope) == {"timestamp": "2026-10-18T09:30:00+00:00"}

    def test_empty_or_invalid_metadata_is_none(self):
        assert decode_metadata(make_envelope("StreamOnEvent", b"{}", b"")) is None
        assert decode_metadata(make_envelope("StreamOnEvent", b"{}", b"[1, 2]")) is None
        assert decode_metadata(make_envelope("StreamOnEvent", b"{}", b"oops")) is None
