# app/schemas/camera.py
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, ClassVar, Optional
from uuid import UUID

from app.schemas.camera_events import (
    DomainEvent,
    MotionDetectedEvent,
    StreamOnEvent,
    StreamOffEvent,
    AlarmOnEvent,
    AlarmOffEvent,
    ConfigChangedEvent,
)


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ── Camera CRUD ──────────────────────────────────────────────────────────────
class CameraRegisterRequest(CamelModel):
    location: str
    model: str
    ip_address: str


class CameraUpdateRequest(CamelModel):
    location: Optional[str] = None
    model: Optional[str] = None
    ip_address: Optional[str] = None
    is_active: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class CameraOut(CamelModel):
    id: UUID
    location: Optional[str]
    model: Optional[str]
    ip_address: Optional[str]
    is_active: bool


class CameraEventOut(CamelModel):
    """One entry of a camera's raw event history."""
    revision: int
    event_id: UUID
    event_type: str
    data: Any
    metadata: Optional[dict] = None


# ── Telemetry requests ───────────────────────────────────────────────────────
class CameraEventRequest(CamelModel):
    event_class: ClassVar[type[DomainEvent]]

    timestamp_utc: datetime = Field(description="When the camera observed the event (UTC)")

    def to_event(self, camera_id: UUID) -> DomainEvent:
        return self.event_class(camera_id=camera_id, **self.model_dump())


class MotionDetectedRequest(CameraEventRequest):
    event_class: ClassVar[type[DomainEvent]] = MotionDetectedEvent
    area: str
    sensitivity: str


class StreamOnRequest(CameraEventRequest):
    event_class: ClassVar[type[DomainEvent]] = StreamOnEvent
    started_by: str


class StreamOffRequest(CameraEventRequest):
    event_class: ClassVar[type[DomainEvent]] = StreamOffEvent
    reason: str


class AlarmOnRequest(CameraEventRequest):
    event_class: ClassVar[type[DomainEvent]] = AlarmOnEvent
    alarm_type: str
    severity: str


class AlarmOffRequest(CameraEventRequest):
    event_class: ClassVar[type[DomainEvent]] = AlarmOffEvent
    cleared_by: str


class ConfigChangedRequest(CameraEventRequest):
    event_class: ClassVar[type[DomainEvent]] = ConfigChangedEvent
    changes: dict[str, Any]
    changed_by: str
