"""
Camera command handlers - register, read, update, decommission, telemetry.

Each handler reads the stream when it needs a precondition or the current
state, appends at most one event, and classifies the outcome as a
CommandResult. Routers turn results into HTTP responses; nothing in here
knows about status codes.

Camera lifecycle: Nonexistent → Active (register) → Decommissioned.
Update works in either existing state. Telemetry is appended unconditionally.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from app.schemas.camera import CameraEventOut, CameraOut, CameraRegisterRequest, CameraUpdateRequest
from app.schemas.camera_events import (
    CameraEvent,
    CameraRegisteredEvent,
    CameraUpdatedEvent,
    CameraDecommissionedEvent,
)
from app.services.event_codec import MalformedEvent, decode_metadata
from app.services.projection import project_camera
from app.services.streams import AppendStatus, append_event, read_history, read_revision
from app.stores.base import EventStore, StoreUnavailable, StreamState
from app.utils.logger import get_logger

logger = get_logger(__name__)


class ResultStatus(str, Enum):
    CREATED = "created"
    OK = "ok"
    NO_CONTENT = "no_content"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


@dataclass(frozen=True)
class CommandResult:
    status: ResultStatus
    camera: Optional[CameraOut] = None
    message: str = ""
    revision: Optional[int] = None
    payload: Any = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _not_found(camera_id: UUID) -> CommandResult:
    logger.warning(f"Camera {camera_id} not found")
    return CommandResult(ResultStatus.NOT_FOUND, message=f"Camera with ID {camera_id} not found.")


def _failure(message: str) -> CommandResult:
    return CommandResult(ResultStatus.FAILURE, message=message)


# ── Register ─────────────────────────────────────────────────────────────────
async def register_camera(store: EventStore, request: CameraRegisterRequest) -> CommandResult:
    camera_id = uuid4()
    event = CameraRegisteredEvent(
        camera_id=camera_id,
        location=request.location,
        model=request.model,
        ip_address=request.ip_address,
        timestamp=_now(),
    )

    result = await append_event(store, camera_id, event, StreamState.NO_STREAM)
    if result.status is AppendStatus.APPENDED:
        logger.info(f"Registered camera {camera_id} at {request.location} ({request.model})")
        camera = CameraOut(
            id=camera_id,
            location=request.location,
            model=request.model,
            ip_address=request.ip_address,
            is_active=True,
        )
        return CommandResult(ResultStatus.CREATED, camera=camera, revision=result.revision)
    if result.status is AppendStatus.ALREADY_EXISTS:
        logger.warning(f"Camera {camera_id} already exists: {result.message}")
        return CommandResult(ResultStatus.CONFLICT, message=f"Camera with ID {camera_id} already exists.")

    logger.error(f"Error registering camera {camera_id}: {result.message}")
    return _failure("Failed to register camera.")


# ── Read ─────────────────────────────────────────────────────────────────────
async def get_camera(store: EventStore, camera_id: UUID) -> CommandResult:
    try:
        history = await read_history(store, camera_id)
    except (MalformedEvent, StoreUnavailable) as e:
        logger.error(f"Error reading camera {camera_id}: {e}", exc_info=True)
        return _failure("Failed to read camera.")

    state = project_camera(camera_id, history.events)
    if not history.exists or not state.registered:
        return _not_found(camera_id)
    return CommandResult(ResultStatus.OK, camera=state.to_out(), revision=history.revision)


async def get_camera_history(store: EventStore, camera_id: UUID, limit: Optional[int] = None) -> CommandResult:
    """Raw event log of one camera, oldest first."""
    try:
        history = await read_history(store, camera_id)
    except (MalformedEvent, StoreUnavailable) as e:
        logger.error(f"Error reading history of camera {camera_id}: {e}", exc_info=True)
        return _failure("Failed to read camera events.")

    if not history.exists:
        return _not_found(camera_id)

    entries = []
    for recorded, event in zip(history.recorded, history.events):
        entries.append(CameraEventOut(
            revision=recorded.revision,
            event_id=recorded.envelope.event_id,
            event_type=recorded.envelope.event_type,
            data=event.model_dump(mode="json", by_alias=True) if event is not None else None,
            metadata=decode_metadata(recorded.envelope),
        ))
    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []
    return CommandResult(ResultStatus.OK, revision=history.revision, payload=entries)


# ── Update ───────────────────────────────────────────────────────────────────
async def update_camera(store: EventStore, camera_id: UUID, request: CameraUpdateRequest) -> CommandResult:
    try:
        revision = await read_revision(store, camera_id)
    except StoreUnavailable as e:
        logger.error(f"Error determining expected revision for update of camera {camera_id}: {e}")
        return _failure("Failed to prepare for camera update.")

    if revision is None:
        return _not_found(camera_id)

    if request.is_empty():
        logger.info(f"Update of camera {camera_id} carries no changes - nothing appended")
        return CommandResult(ResultStatus.OK, revision=revision)

    event = CameraUpdatedEvent(
        camera_id=camera_id,
        location=request.location,
        model=request.model,
        ip_address=request.ip_address,
        is_active=request.is_active,
        timestamp=_now(),
    )
    result = await append_event(store, camera_id, event, revision)

    if result.status is AppendStatus.APPENDED:
        return CommandResult(ResultStatus.OK, revision=result.revision)
    if result.status is AppendStatus.CONFLICT:
        logger.warning(f"Concurrent modification of camera {camera_id}: {result.message}")
        return CommandResult(
            ResultStatus.CONFLICT,
            message=f"Update failed due to a concurrency conflict. Camera {camera_id} was modified concurrently.",
        )
    if result.status is AppendStatus.STREAM_ABSENT:
        return _not_found(camera_id)

    logger.error(f"Error updating camera {camera_id}: {result.message}")
    return _failure("Failed to update camera.")


# ── Decommission ─────────────────────────────────────────────────────────────
async def decommission_camera(store: EventStore, camera_id: UUID) -> CommandResult:
    try:
        history = await read_history(store, camera_id)
    except (MalformedEvent, StoreUnavailable) as e:
        logger.error(f"Error reading camera {camera_id} before decommission: {e}", exc_info=True)
        return _failure("Failed to prepare for camera decommissioning.")

    state = project_camera(camera_id, history.events)
    if not history.exists or not state.registered:
        return _not_found(camera_id)
    if not state.is_active:
        logger.info(f"Camera {camera_id} already inactive - nothing appended")
        return CommandResult(ResultStatus.NO_CONTENT, revision=history.revision)

    event = CameraDecommissionedEvent(camera_id=camera_id, timestamp=_now())
    result = await append_event(store, camera_id, event, history.revision)

    if result.status is AppendStatus.APPENDED:
        logger.info(f"Decommissioned camera {camera_id}")
        return CommandResult(ResultStatus.NO_CONTENT, revision=result.revision)
    if result.status is AppendStatus.CONFLICT:
        logger.warning(f"Concurrent modification of camera {camera_id}: {result.message}")
        return CommandResult(
            ResultStatus.CONFLICT,
            message=f"Decommission failed due to a concurrency conflict. Camera {camera_id} was modified concurrently.",
        )
    if result.status is AppendStatus.STREAM_ABSENT:
        return _not_found(camera_id)

    logger.error(f"Error decommissioning camera {camera_id}: {result.message}")
    return _failure("Failed to decommission camera.")


# ── Telemetry ────────────────────────────────────────────────────────────────
async def record_camera_event(store: EventStore, camera_id: UUID, event: CameraEvent) -> CommandResult:
    """Append a telemetry event with no existence or revision check (last writer wins)."""
    result = await append_event(store, camera_id, event, StreamState.ANY)
    if result.ok:
        return CommandResult(ResultStatus.OK, revision=result.revision)

    logger.error(f"Error recording {type(event).__name__} for camera {camera_id}: {result.message}")
    return _failure(f"Failed to record {type(event).__name__} for camera {camera_id}.")
