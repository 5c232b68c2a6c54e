# app/routers/camera_events.py
"""
Telemetry ingestion - one endpoint per event kind.
Events are appended without checking that the camera is registered.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.event_store import get_event_store
from app.routers.cameras import raise_for_result
from app.schemas.camera import (
    CameraEventRequest,
    MotionDetectedRequest,
    StreamOnRequest,
    StreamOffRequest,
    AlarmOnRequest,
    AlarmOffRequest,
    ConfigChangedRequest,
)
from app.services.camera_service import record_camera_event
from app.stores.base import EventStore
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


async def _record(camera_id: UUID, body: CameraEventRequest, store: EventStore) -> dict:
    event = body.to_event(camera_id)
    logger.info(f"{type(event).__name__} for camera {camera_id} at {body.timestamp_utc.isoformat()}")
    result = raise_for_result(await record_camera_event(store, camera_id, event))
    return {"status": "ok", "event_type": type(event).__name__, "revision": result.revision}


@router.post("/cameras/{camera_id}/events/motion-detected", summary="Motion detected")
async def motion_detected(camera_id: UUID, body: MotionDetectedRequest,
                          store: EventStore = Depends(get_event_store)):
    return await _record(camera_id, body, store)


@router.post("/cameras/{camera_id}/events/stream-on", summary="Stream started")
async def stream_on(camera_id: UUID, body: StreamOnRequest,
                    store: EventStore = Depends(get_event_store)):
    return await _record(camera_id, body, store)


@router.post("/cameras/{camera_id}/events/stream-off", summary="Stream stopped")
async def stream_off(camera_id: UUID, body: StreamOffRequest,
                     store: EventStore = Depends(get_event_store)):
    return await _record(camera_id, body, store)


@router.post("/cameras/{camera_id}/events/alarm-on", summary="Alarm raised")
async def alarm_on(camera_id: UUID, body: AlarmOnRequest,
                   store: EventStore = Depends(get_event_store)):
    return await _record(camera_id, body, store)


@router.post("/cameras/{camera_id}/events/alarm-off", summary="Alarm cleared")
async def alarm_off(camera_id: UUID, body: AlarmOffRequest,
                    store: EventStore = Depends(get_event_store)):
    return await _record(camera_id, body, store)


@router.post("/cameras/{camera_id}/events/config-changed", summary="Configuration changed")
async def config_changed(camera_id: UUID, body: ConfigChangedRequest,
                         store: EventStore = Depends(get_event_store)):
    return await _record(camera_id, body, store)
