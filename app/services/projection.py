"""
Camera state projection - replays a camera's event stream into its current state.

The projection is a left fold over the stream in order. It holds no state of
its own: the same events always give the same CameraState, and any prefix of
the stream gives the state as of that point in history.
"""

from dataclasses import dataclass, replace
from functools import reduce
from typing import Iterable, Optional
from uuid import UUID

from app.schemas.camera import CameraOut
from app.schemas.camera_events import (
    CameraEvent,
    CameraRegisteredEvent,
    CameraUpdatedEvent,
    CameraDecommissionedEvent,
)


@dataclass(frozen=True)
class CameraState:
    camera_id: UUID
    location: Optional[str] = None
    model: Optional[str] = None
    ip_address: Optional[str] = None
    is_active: bool = False
    registered: bool = False    # False until a CameraRegisteredEvent is seen

    def to_out(self) -> CameraOut:
        return CameraOut(
            id=self.camera_id,
            location=self.location,
            model=self.model,
            ip_address=self.ip_address,
            is_active=self.is_active,
        )


def apply_event(state: CameraState, event: Optional[CameraEvent]) -> CameraState:
    if isinstance(event, CameraRegisteredEvent):
        return replace(
            state,
            location=event.location,
            model=event.model,
            ip_address=event.ip_address,
            is_active=True,
            registered=True,
        )

    if isinstance(event, CameraUpdatedEvent):
        changes = {
            field: value
            for field, value in (
                ("location", event.location),
                ("model", event.model),
                ("ip_address", event.ip_address),
                ("is_active", event.is_active),
            )
            if value is not None
        }
        return replace(state, **changes)

    if isinstance(event, CameraDecommissionedEvent):
        return replace(state, is_active=False)

    # Telemetry events and unrecognized types (None) leave the state untouched
    return state


def project_camera(camera_id: UUID, events: Iterable[Optional[CameraEvent]]) -> CameraState:
    return reduce(apply_event, events, CameraState(camera_id=camera_id))
