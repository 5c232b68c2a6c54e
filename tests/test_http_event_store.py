"""Unit tests for the EventStoreDB HTTP adapter (no network - httpx.MockTransport)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import uuid
import httpx
import pytest
from datetime import datetime, timezone
from app.schemas.camera_events import StreamOnEvent
from app.services.camera_service import ResultStatus, record_camera_event
from app.services.event_codec import EventEnvelope
from app.stores.base import StoreUnavailable, StreamNotFound, StreamState, WrongExpectedRevision
from app.stores.http import HttpEventStore

BASE_URL = "http://eventstore:2113"


def envelope():
    return EventEnvelope(uuid.uuid4(), "StreamOnEvent", b'{"startedBy": "ops"}', b'{"timestamp": "t"}')


def atom_entry(n):
    return {
        "eventId": str(uuid.uuid4()),
        "eventType": "StreamOnEvent",
        "eventNumber": n,
        "data": json.dumps({"n": n}),
        "metaData": json.dumps({"timestamp": "t"}),
        "isJson": True,
    }


def make_store(handler, page_size=100):
    return HttpEventStore(BASE_URL, page_size=page_size, transport=httpx.MockTransport(handler))


async def collect(iterator):
    return [e async for e in iterator]


class TestAppend:
    @pytest.mark.asyncio
    async def test_posts_events_with_expected_version(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, headers={"Location": f"{BASE_URL}/streams/camera-1/0"})

        store = make_store(handler)
        sent = envelope()
        revision = await store.append_to_stream("camera-1", StreamState.NO_STREAM, [sent])

        assert revision == 0
        assert seen["path"] == "/streams/camera-1"
        assert seen["headers"]["ES-ExpectedVersion"] == "-1"
        assert seen["headers"]["Content-Type"] == "application/vnd.eventstore.events+json"
        assert seen["body"] == [{
            "eventId": str(sent.event_id),
            "eventType": "StreamOnEvent",
            "data": {"startedBy": "ops"},
            "metadata": {"timestamp": "t"},
        }]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expected, header", [(StreamState.ANY, "-2"), (7, "7")])
    async def test_expected_version_header(self, expected, header):
        def handler(request):
            assert request.headers["ES-ExpectedVersion"] == header
            return httpx.Response(201, headers={"Location": f"{BASE_URL}/streams/camera-1/8"})

        assert await make_store(handler).append_to_stream("camera-1", expected, [envelope()]) == 8

    @pytest.mark.asyncio
    async def test_created_without_location_is_unavailable(self):
        with pytest.raises(StoreUnavailable):
            await make_store(lambda request: httpx.Response(201)).append_to_stream(
                "camera-1", StreamState.ANY, [envelope()])

    @pytest.mark.asyncio
    async def test_wrong_expected_version(self):
        def handler(request):
            return httpx.Response(400, headers={"ES-CurrentVersion": "3"})

        with pytest.raises(WrongExpectedRevision) as exc:
            await make_store(handler).append_to_stream("camera-1", 2, [envelope()])
        assert exc.value.expected == 2
        assert exc.value.actual == 3

    @pytest.mark.asyncio
    async def test_wrong_expected_version_on_missing_stream(self):
        def handler(request):
            return httpx.Response(400, headers={"ES-CurrentVersion": "-1"})

        with pytest.raises(WrongExpectedRevision) as exc:
            await make_store(handler).append_to_stream("camera-1", 0, [envelope()])
        assert exc.value.actual is None

    @pytest.mark.asyncio
    async def test_deleted_stream(self):
        with pytest.raises(StreamNotFound):
            await make_store(lambda request: httpx.Response(410)).append_to_stream(
                "camera-1", StreamState.ANY, [envelope()])

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        with pytest.raises(StoreUnavailable):
            await make_store(lambda request: httpx.Response(503)).append_to_stream(
                "camera-1", StreamState.ANY, [envelope()])

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(StoreUnavailable):
            await make_store(handler).append_to_stream("camera-1", StreamState.ANY, [envelope()])

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(StoreUnavailable):
            await make_store(handler).append_to_stream("camera-1", StreamState.ANY, [envelope()])


class TestHandlerClassification:
    @pytest.mark.asyncio
    async def test_unusable_append_response_is_failure(self):
        store = make_store(lambda request: httpx.Response(201))
        camera_id = uuid.uuid4()
        event = StreamOnEvent(camera_id=camera_id, timestamp_utc=datetime.now(timezone.utc), started_by="ops")

        result = await record_camera_event(store, camera_id, event)
        assert result.status is ResultStatus.FAILURE


class TestRead:
    @pytest.mark.asyncio
    async def test_missing_stream(self):
        with pytest.raises(StreamNotFound):
            await collect(make_store(lambda request: httpx.Response(404)).read_stream("camera-1"))

    @pytest.mark.asyncio
    async def test_forward_read_pages_through_stream(self):
        total = 5
        requested = []

        def handler(request):
            requested.append(request.url.path)
            assert request.url.params["embed"] == "body"
            _, _, _, start, direction, count = request.url.path.split("/")
            assert direction == "forward"
            numbers = range(int(start), min(int(start) + int(count), total))
            # Atom feeds list newest first
            entries = [atom_entry(n) for n in reversed(numbers)]
            return httpx.Response(200, json={"entries": entries})

        events = await collect(make_store(handler, page_size=2).read_stream("camera-1"))

        assert [e.revision for e in events] == [0, 1, 2, 3, 4]
        assert events[3].envelope.data == b'{"n": 3}'
        assert events[0].envelope.metadata == b'{"timestamp": "t"}'
        assert requested == [
            "/streams/camera-1/0/forward/2",
            "/streams/camera-1/2/forward/2",
            "/streams/camera-1/4/forward/2",
        ]

    @pytest.mark.asyncio
    async def test_backward_read_of_head(self):
        def handler(request):
            assert request.url.path == "/streams/camera-1/head/backward/1"
            return httpx.Response(200, json={"entries": [atom_entry(9)]})

        events = await collect(make_store(handler).read_stream("camera-1", backwards=True, limit=1))
        assert [e.revision for e in events] == [9]

    @pytest.mark.asyncio
    async def test_non_json_feed_is_unavailable(self):
        store = make_store(lambda request: httpx.Response(200, text="<html>AtomPub disabled</html>"))
        with pytest.raises(StoreUnavailable):
            await collect(store.read_stream("camera-1"))

    @pytest.mark.asyncio
    async def test_embedded_json_object_data(self):
        entry = atom_entry(0)
        entry["data"] = {"n": 0}

        store = make_store(lambda request: httpx.Response(200, json={"entries": [entry]}))
        [event] = await collect(store.read_stream("camera-1"))
        assert json.loads(event.envelope.data) == {"n": 0}


class TestHealth:
    @pytest.mark.asyncio
    async def test_ping(self):
        def handler(request):
            assert request.url.path == "/health/live"
            return httpx.Response(204)

        assert await make_store(handler).ping() is True

    @pytest.mark.asyncio
    async def test_ping_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert await make_store(handler).ping() is False
