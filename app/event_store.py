"""
Process-wide event store client.
Built once on startup, kept on app.state and handed to routes through the
get_event_store dependency; closed on shutdown.
"""

from fastapi import Request

from app.config import settings
from app.stores.base import EventStore
from app.utils.logger import get_logger

logger = get_logger(__name__)


def build_event_store(backend: str = None) -> EventStore:
    backend = (backend or settings.EVENT_STORE_BACKEND).lower()

    if backend == "http":
        from app.stores.http import HttpEventStore
        logger.info(f"Event store: EventStoreDB HTTP API at {settings.EVENTSTORE_URL}")
        logger.info("EventStoreDB must run with AtomPub enabled "
                    "(EVENTSTORE_ENABLE_ATOM_PUB_OVER_HTTP=true); without it every stream reads as missing")
        return HttpEventStore(
            settings.EVENTSTORE_URL,
            auth=settings.EVENTSTORE_AUTH,
            timeout=settings.EVENTSTORE_TIMEOUT_SECONDS,
            page_size=settings.EVENTSTORE_PAGE_SIZE,
        )

    if backend == "sql":
        from app.database import create_tables, get_session_factory
        from app.stores.sql import SqlEventStore
        create_tables()
        logger.info("Event store: SQL table stream_events")
        return SqlEventStore(get_session_factory())

    if backend == "memory":
        from app.stores.memory import InMemoryEventStore
        logger.warning("Event store: in-memory - events are lost on restart")
        return InMemoryEventStore()

    raise ValueError(f"Unknown EVENT_STORE_BACKEND {backend!r} (expected http, sql or memory)")


def get_event_store(request: Request) -> EventStore:
    """FastAPI dependency - the store built at startup."""
    return request.app.state.event_store
