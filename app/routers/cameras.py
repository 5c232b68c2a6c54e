# app/routers/cameras.py
"""
Camera CRUD over the event store.
POST   /cameras                - register (201)
GET    /cameras/{id}           - current state, replayed from the stream
PUT    /cameras/{id}           - partial update, revision-gated (409 on conflict)
DELETE /cameras/{id}           - decommission (204, idempotent)
GET    /cameras/{id}/events    - raw event history
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.event_store import get_event_store
from app.schemas.camera import CameraEventOut, CameraOut, CameraRegisterRequest, CameraUpdateRequest
from app.services.camera_service import (
    CommandResult,
    ResultStatus,
    decommission_camera,
    get_camera,
    get_camera_history,
    register_camera,
    update_camera,
)
from app.stores.base import EventStore

router = APIRouter()

_ERROR_STATUS = {
    ResultStatus.CONFLICT: status.HTTP_409_CONFLICT,
    ResultStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ResultStatus.FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_result(result: CommandResult) -> CommandResult:
    """Turn conflict / not-found / failure results into HTTP errors."""
    if result.status in _ERROR_STATUS:
        raise HTTPException(status_code=_ERROR_STATUS[result.status], detail=result.message)
    return result


@router.post("/cameras", response_model=CameraOut, status_code=status.HTTP_201_CREATED,
             summary="Register a new camera")
async def create_camera(body: CameraRegisterRequest, response: Response,
                        store: EventStore = Depends(get_event_store)):
    result = raise_for_result(await register_camera(store, body))
    response.headers["Location"] = f"/api/v1/cameras/{result.camera.id}"
    return result.camera


@router.get("/cameras/{camera_id}", response_model=CameraOut,
            summary="Current camera state (replayed from its events)")
async def read_camera(camera_id: UUID, store: EventStore = Depends(get_event_store)):
    return raise_for_result(await get_camera(store, camera_id)).camera


@router.put("/cameras/{camera_id}", summary="Update camera properties")
async def put_camera(camera_id: UUID, body: CameraUpdateRequest,
                     store: EventStore = Depends(get_event_store)):
    """Only the fields present in the body change. Retry after re-reading on 409."""
    result = raise_for_result(await update_camera(store, camera_id, body))
    return {"status": "updated", "camera_id": str(camera_id), "revision": result.revision}


@router.delete("/cameras/{camera_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Decommission a camera")
async def delete_camera(camera_id: UUID, store: EventStore = Depends(get_event_store)):
    """Appends a decommission event; the camera's history is kept."""
    raise_for_result(await decommission_camera(store, camera_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/cameras/{camera_id}/events", response_model=list[CameraEventOut],
            summary="Raw event history of a camera")
async def list_camera_events(camera_id: UUID, limit: Optional[int] = Query(None, ge=0),
                             store: EventStore = Depends(get_event_store)):
    """Oldest first. With limit, only the most recent events are returned."""
    return raise_for_result(await get_camera_history(store, camera_id, limit)).payload
