"""
System health check endpoint.
Returns status of the backend and of the configured event store.
"""

from fastapi import APIRouter, Depends
from datetime import datetime
from app.config import settings
from app.event_store import get_event_store
from app.stores.base import EventStore

router = APIRouter()


@router.get("/health", summary="System health check")
async def health_check(store: EventStore = Depends(get_event_store)):
    """
    Returns:
    - Backend status
    - Event store backend name and reachability
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "event_store": {"backend": settings.EVENT_STORE_BACKEND, "status": "unknown"},
    }

    if await store.ping():
        result["event_store"]["status"] = "ok"
    else:
        result["event_store"]["status"] = "unreachable"
        result["status"] = "degraded"

    return result
