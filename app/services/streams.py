"""
Reading and appending a camera's event stream.

Reads return the decoded history together with the stream's current revision.
Appends never raise for store-level outcomes: conflicts, missing streams and
outages come back as an AppendResult the caller must inspect. Nothing here
retries. A failed or timed-out append must be preceded by a fresh read before
it is attempted again, otherwise a revision-gated retry of an append that did
land would report a spurious conflict.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import UUID

from app.config import settings
from app.schemas.camera_events import CameraEvent
from app.services.event_codec import decode_event, encode_event
from app.stores.base import (
    EventStore,
    ExpectedRevision,
    RecordedEvent,
    StoreUnavailable,
    StreamNotFound,
    StreamState,
    WrongExpectedRevision,
    describe_expected,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


def stream_name_for(camera_id: UUID) -> str:
    return f"{settings.STREAM_PREFIX}-{camera_id}"


# ── Read ─────────────────────────────────────────────────────────────────────
@dataclass
class StreamHistory:
    stream_name: str
    events: list = field(default_factory=list)      # Decoded events; None = unrecognized type
    recorded: list = field(default_factory=list)    # Raw RecordedEvent entries, same order
    revision: Optional[int] = None

    @property
    def exists(self) -> bool:
        return self.revision is not None


async def read_history(store: EventStore, camera_id: UUID) -> StreamHistory:
    """
    Read the whole stream forwards and decode it.
    A stream the store does not know, or one with no events, is nonexistent.
    Raises MalformedEvent and StoreUnavailable.
    """
    history = StreamHistory(stream_name=stream_name_for(camera_id))
    try:
        async for recorded in store.read_stream(history.stream_name):
            history.recorded.append(recorded)
            history.events.append(decode_event(recorded.envelope))
            history.revision = recorded.revision
    except StreamNotFound:
        return StreamHistory(stream_name=history.stream_name)
    return history


async def read_revision(store: EventStore, camera_id: UUID) -> Optional[int]:
    """Revision of the stream's last event, or None if the stream does not exist."""
    last: Optional[RecordedEvent] = None
    try:
        async for recorded in store.read_stream(stream_name_for(camera_id), backwards=True, limit=1):
            last = recorded
    except StreamNotFound:
        return None
    return last.revision if last else None


# ── Append ───────────────────────────────────────────────────────────────────
class AppendStatus(str, Enum):
    APPENDED = "appended"
    ALREADY_EXISTS = "already_exists"
    CONFLICT = "conflict"
    STREAM_ABSENT = "stream_absent"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AppendResult:
    status: AppendStatus
    revision: Optional[int] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is AppendStatus.APPENDED


async def append_event(store: EventStore, camera_id: UUID, event: CameraEvent,
                       expected: ExpectedRevision) -> AppendResult:
    stream_name = stream_name_for(camera_id)
    envelope = encode_event(event)

    try:
        revision = await store.append_to_stream(stream_name, expected, [envelope])
    except WrongExpectedRevision as e:
        if expected is StreamState.NO_STREAM:
            return AppendResult(AppendStatus.ALREADY_EXISTS, e.actual, str(e))
        return AppendResult(AppendStatus.CONFLICT, e.actual, str(e))
    except StreamNotFound as e:
        return AppendResult(AppendStatus.STREAM_ABSENT, message=str(e))
    except StoreUnavailable as e:
        logger.error(f"Append of {envelope.event_type} to {stream_name} failed: {e}")
        return AppendResult(AppendStatus.UNAVAILABLE, message=str(e))

    logger.info(
        f"Appended {envelope.event_type} to {stream_name} "
        f"(expected {describe_expected(expected)}, now revision {revision})"
    )
    return AppendResult(AppendStatus.APPENDED, revision)
