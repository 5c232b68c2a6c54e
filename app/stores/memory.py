"""In-process event store for tests and local development (EVENT_STORE_BACKEND=memory)."""

from typing import Optional, Sequence

from app.services.event_codec import EventEnvelope
from app.stores.base import (
    EventStore,
    ExpectedRevision,
    RecordedEvent,
    StreamNotFound,
    StreamState,
    WrongExpectedRevision,
)


class InMemoryEventStore(EventStore):
    def __init__(self):
        self._streams: dict[str, list[RecordedEvent]] = {}

    def revision_of(self, stream_name: str) -> Optional[int]:
        stream = self._streams.get(stream_name)
        return len(stream) - 1 if stream else None

    async def append_to_stream(
        self,
        stream_name: str,
        expected: ExpectedRevision,
        envelopes: Sequence[EventEnvelope],
    ) -> int:
        # Check and append run without awaiting, so appends to a stream are linearized
        current = self.revision_of(stream_name)
        if expected is StreamState.NO_STREAM and current is not None:
            raise WrongExpectedRevision(stream_name, expected, current)
        if isinstance(expected, int) and expected != current:
            raise WrongExpectedRevision(stream_name, expected, current)

        stream = self._streams.setdefault(stream_name, [])
        for envelope in envelopes:
            stream.append(RecordedEvent(stream_name, len(stream), envelope))
        return len(stream) - 1

    async def read_stream(
        self,
        stream_name: str,
        backwards: bool = False,
        from_revision: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        stream = self._streams.get(stream_name)
        if not stream:
            raise StreamNotFound(stream_name)

        if backwards:
            start = len(stream) - 1 if from_revision is None else min(from_revision, len(stream) - 1)
            selected = stream[start::-1] if start >= 0 else []
        else:
            selected = stream[from_revision or 0:]

        if limit is not None:
            selected = selected[:limit]
        for recorded in selected:
            yield recorded
