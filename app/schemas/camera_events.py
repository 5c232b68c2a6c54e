# app/schemas/camera_events.py
"""
Domain events appended to a camera's stream.
Field names go on the wire in camelCase (ip_address → ipAddress).
Lifecycle events carry the server timestamp; telemetry events carry the
timestamp reported by the client (timestampUtc).
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Optional, Union
from uuid import UUID


class DomainEvent(BaseModel):
    camera_id: UUID

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


# ── Lifecycle ────────────────────────────────────────────────────────────────
class CameraRegisteredEvent(DomainEvent):
    location: str
    model: str
    ip_address: str
    timestamp: datetime


class CameraUpdatedEvent(DomainEvent):
    # None = "no change"; an empty string is a real value
    location: Optional[str] = None
    model: Optional[str] = None
    ip_address: Optional[str] = None
    is_active: Optional[bool] = None
    timestamp: datetime


class CameraDecommissionedEvent(DomainEvent):
    timestamp: datetime


# ── Telemetry ────────────────────────────────────────────────────────────────
class MotionDetectedEvent(DomainEvent):
    timestamp_utc: datetime
    area: str
    sensitivity: str


class StreamOnEvent(DomainEvent):
    timestamp_utc: datetime
    started_by: str


class StreamOffEvent(DomainEvent):
    timestamp_utc: datetime
    reason: str


class AlarmOnEvent(DomainEvent):
    timestamp_utc: datetime
    alarm_type: str
    severity: str


class AlarmOffEvent(DomainEvent):
    timestamp_utc: datetime
    cleared_by: str


class ConfigChangedEvent(DomainEvent):
    timestamp_utc: datetime
    changes: dict[str, Any]
    changed_by: str


CameraEvent = Union[
    CameraRegisteredEvent,
    CameraUpdatedEvent,
    CameraDecommissionedEvent,
    MotionDetectedEvent,
    StreamOnEvent,
    StreamOffEvent,
    AlarmOnEvent,
    AlarmOffEvent,
    ConfigChangedEvent,
]

