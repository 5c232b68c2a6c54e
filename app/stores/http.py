"""
EventStoreDB adapter over its HTTP API (EVENT_STORE_BACKEND=http).

Append: POST /streams/{stream}
        ES-ExpectedVersion: -1 (no stream) | -2 (any) | n (last event number)
        → 201 + Location: .../streams/{stream}/{n}
        → 400 "Wrong expected EventNumber" + ES-CurrentVersion on conflict
Read:   GET /streams/{stream}/{from}/forward/{count}?embed=body
        GET /streams/{stream}/{from|head}/backward/{count}?embed=body
        → 404 when the stream does not exist
Atom feeds list entries newest first whatever the read direction.

EventStoreDB 20+ ships with AtomPub off. Run the server with
EVENTSTORE_ENABLE_ATOM_PUB_OVER_HTTP=true (--enable-atom-pub-over-http), otherwise
every /streams request answers 404 and every camera looks unregistered.
"""

import json
import uuid
from typing import Optional, Sequence

import httpx

from app.services.event_codec import EventEnvelope
from app.stores.base import (
    EventStore,
    ExpectedRevision,
    RecordedEvent,
    StoreUnavailable,
    StreamNotFound,
    StreamState,
    WrongExpectedRevision,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

EVENTS_CONTENT_TYPE = "application/vnd.eventstore.events+json"
ATOM_CONTENT_TYPE = "application/vnd.eventstore.atom+json"

_EXPECTED_VERSION_HEADER = {
    StreamState.NO_STREAM: "-1",
    StreamState.ANY: "-2",
}


def _expected_version_header(expected: ExpectedRevision) -> str:
    if isinstance(expected, StreamState):
        return _EXPECTED_VERSION_HEADER[expected]
    return str(expected)


def _revision_from_location(location: str) -> int:
    """Location header ends with the event number of the appended event."""
    return int(location.rstrip("/").rsplit("/", 1)[-1])


def _as_bytes(value) -> bytes:
    if value is None or value == "":
        return b""
    if isinstance(value, (dict, list)):
        return json.dumps(value).encode("utf-8")
    return str(value).encode("utf-8")


def _entry_to_recorded(stream_name: str, entry: dict) -> RecordedEvent:
    return RecordedEvent(
        stream_name=stream_name,
        revision=int(entry["eventNumber"]),
        envelope=EventEnvelope(
            event_id=uuid.UUID(entry["eventId"]),
            event_type=entry["eventType"],
            data=_as_bytes(entry.get("data")),
            metadata=_as_bytes(entry.get("metaData")),
        ),
    )


class HttpEventStore(EventStore):
    def __init__(self, base_url: str, auth: Optional[tuple] = None,
                 timeout: float = 10.0, page_size: int = 100,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.page_size = page_size
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise StoreUnavailable(f"Event store timed out on {method} {url}") from e
        except httpx.TransportError as e:
            logger.warning(f"Event store transport error on {method} {url}: {e}")
            raise StoreUnavailable(f"Event store unreachable on {method} {url}: {e}") from e

        if response.status_code >= 500:
            raise StoreUnavailable(f"Event store returned HTTP {response.status_code} on {method} {url}")
        return response

    async def append_to_stream(
        self,
        stream_name: str,
        expected: ExpectedRevision,
        envelopes: Sequence[EventEnvelope],
    ) -> int:
        body = [
            {
                "eventId": str(envelope.event_id),
                "eventType": envelope.event_type,
                "data": json.loads(envelope.data),
                "metadata": json.loads(envelope.metadata) if envelope.metadata else {},
            }
            for envelope in envelopes
        ]
        response = await self._request(
            "POST",
            f"/streams/{stream_name}",
            content=json.dumps(body),
            headers={
                "Content-Type": EVENTS_CONTENT_TYPE,
                "ES-ExpectedVersion": _expected_version_header(expected),
            },
        )

        if response.status_code == 201:
            location = response.headers.get("Location")
            try:
                return _revision_from_location(location)
            except (AttributeError, ValueError) as e:
                raise StoreUnavailable(
                    f"Append to '{stream_name}' returned 201 without a usable Location header: {location!r}"
                ) from e
        current = response.headers.get("ES-CurrentVersion")
        if response.status_code == 400 and (current is not None or "Wrong expected" in response.reason_phrase):
            actual = int(current) if current is not None and int(current) >= 0 else None
            raise WrongExpectedRevision(stream_name, expected, actual)
        if response.status_code in (404, 410):
            raise StreamNotFound(stream_name)
        raise StoreUnavailable(
            f"Unexpected HTTP {response.status_code} appending to '{stream_name}': {response.text[:200]}"
        )

    async def _read_page(self, stream_name: str, start: str, direction: str, count: int) -> list:
        response = await self._request(
            "GET",
            f"/streams/{stream_name}/{start}/{direction}/{count}",
            params={"embed": "body"},
            headers={"Accept": ATOM_CONTENT_TYPE},
        )
        if response.status_code in (404, 410):
            raise StreamNotFound(stream_name)
        if response.status_code != 200:
            raise StoreUnavailable(
                f"Unexpected HTTP {response.status_code} reading '{stream_name}'"
            )
        try:
            entries = response.json().get("entries", [])
        except (ValueError, AttributeError) as e:
            raise StoreUnavailable(f"Unreadable feed page for '{stream_name}': {e}") from e
        return sorted(entries, key=lambda e: int(e["eventNumber"]), reverse=(direction == "backward"))

    async def read_stream(
        self,
        stream_name: str,
        backwards: bool = False,
        from_revision: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        direction = "backward" if backwards else "forward"
        if backwards:
            position = "head" if from_revision is None else str(from_revision)
        else:
            position = str(from_revision or 0)
        remaining = limit

        while True:
            count = self.page_size if remaining is None else min(self.page_size, remaining)
            entries = await self._read_page(stream_name, position, direction, count)
            for entry in entries:
                yield _entry_to_recorded(stream_name, entry)

            if remaining is not None:
                remaining -= len(entries)
                if remaining <= 0:
                    return
            if len(entries) < count:
                return

            last = int(entries[-1]["eventNumber"])
            if backwards and last == 0:
                return
            position = str(last - 1 if backwards else last + 1)

    async def ping(self) -> bool:
        try:
            response = await self._request("GET", "/health/live")
        except StoreUnavailable:
            return False
        return response.status_code in (200, 204)

    async def close(self) -> None:
        await self._client.aclose()
