"""
Event store port - the append-only log every camera stream lives in.

Adapters (memory, EventStoreDB HTTP API, SQL) implement EventStore and signal
failures with the exceptions below. Appends are gated on an expected revision:
  StreamState.NO_STREAM  - stream must not exist yet
  StreamState.ANY        - no check
  int                    - revision of the stream's last event must equal it
"""

import abc
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional, Sequence, Union

from app.services.event_codec import EventEnvelope


class StreamState(Enum):
    ANY = "any"
    NO_STREAM = "no_stream"


ExpectedRevision = Union[StreamState, int]


def describe_expected(expected: ExpectedRevision) -> str:
    if isinstance(expected, StreamState):
        return expected.value
    return f"revision {expected}"


@dataclass(frozen=True)
class RecordedEvent:
    stream_name: str
    revision: int               # Zero-based position within the stream
    envelope: EventEnvelope


# ── Errors ───────────────────────────────────────────────────────────────────
class EventStoreError(Exception):
    pass


class WrongExpectedRevision(EventStoreError):
    def __init__(self, stream_name: str, expected: ExpectedRevision, actual: Optional[int]):
        self.stream_name = stream_name
        self.expected = expected
        self.actual = actual
        actual_desc = "no stream" if actual is None else f"revision {actual}"
        super().__init__(
            f"Append to '{stream_name}' expected {describe_expected(expected)}, found {actual_desc}"
        )


class StreamNotFound(EventStoreError):
    def __init__(self, stream_name: str):
        self.stream_name = stream_name
        super().__init__(f"Stream '{stream_name}' not found")


class StoreUnavailable(EventStoreError):
    """The store could not be reached or did not answer in time."""


# ── Port ─────────────────────────────────────────────────────────────────────
class EventStore(abc.ABC):
    """Shared by all requests; implementations must not hold per-request state."""

    @abc.abstractmethod
    async def append_to_stream(
        self,
        stream_name: str,
        expected: ExpectedRevision,
        envelopes: Sequence[EventEnvelope],
    ) -> int:
        """Append atomically and return the revision of the last appended event."""

    @abc.abstractmethod
    def read_stream(
        self,
        stream_name: str,
        backwards: bool = False,
        from_revision: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> AsyncIterator[RecordedEvent]:
        """
        Iterate the stream forwards from from_revision (default: start) or
        backwards from from_revision (default: end).
        Raises StreamNotFound if nothing was ever appended to the stream.
        """

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass
