"""
Converts domain events to and from the envelope stored in the event store.

Envelope = event id + event type tag + JSON payload + JSON metadata.
Decoding dispatches on the type tag alone. Unknown tags decode to None so that
readers keep working when newer writers add event types; a known tag whose
payload does not validate raises MalformedEvent.
"""

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from app.schemas.camera_events import (
    CameraEvent,
    CameraRegisteredEvent,
    CameraUpdatedEvent,
    CameraDecommissionedEvent,
    MotionDetectedEvent,
    StreamOnEvent,
    StreamOffEvent,
    AlarmOnEvent,
    AlarmOffEvent,
    ConfigChangedEvent,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

EVENT_TYPES = {
    cls.__name__: cls
    for cls in (
        CameraRegisteredEvent,
        CameraUpdatedEvent,
        CameraDecommissionedEvent,
        MotionDetectedEvent,
        StreamOnEvent,
        StreamOffEvent,
        AlarmOnEvent,
        AlarmOffEvent,
        ConfigChangedEvent,
    )
}


class MalformedEvent(Exception):
    """A stored event with a known type tag whose payload cannot be decoded."""

    def __init__(self, event_id, event_type: str, reason: str):
        self.event_id = event_id
        self.event_type = event_type
        self.reason = reason
        super().__init__(f"Malformed {event_type} event {event_id}: {reason}")


@dataclass(frozen=True)
class EventEnvelope:
    event_id: uuid.UUID
    event_type: str
    data: bytes
    metadata: bytes


def event_type_of(event: CameraEvent) -> str:
    event_type = type(event).__name__
    if event_type not in EVENT_TYPES:
        raise TypeError(f"Not a camera event: {event_type}")
    return event_type


def encode_event(event: CameraEvent, captured_at: Optional[datetime] = None) -> EventEnvelope:
    """Wrap a domain event in a fresh envelope ready to append."""
    captured_at = captured_at or datetime.now(timezone.utc)
    metadata = {"timestamp": captured_at.isoformat()}
    return EventEnvelope(
        event_id=uuid.uuid4(),
        event_type=event_type_of(event),
        data=event.model_dump_json(by_alias=True).encode("utf-8"),
        metadata=json.dumps(metadata).encode("utf-8"),
    )


def decode_event(envelope: EventEnvelope) -> Optional[CameraEvent]:
    """
    Rebuild the domain event from its envelope.
    Returns None for type tags this service does not know.
    """
    event_class = EVENT_TYPES.get(envelope.event_type)
    if event_class is None:
        logger.debug(f"Skipping unrecognized event type {envelope.event_type!r} ({envelope.event_id})")
        return None

    try:
        return event_class.model_validate_json(envelope.data)
    except ValidationError as e:
        raise MalformedEvent(envelope.event_id, envelope.event_type, str(e)) from e


def decode_metadata(envelope: EventEnvelope) -> Optional[dict]:
    """Metadata is informational only; anything that is not a JSON object is dropped."""
    if not envelope.metadata:
        return None
    try:
        metadata = json.loads(envelope.metadata.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return metadata if isinstance(metadata, dict) else None
