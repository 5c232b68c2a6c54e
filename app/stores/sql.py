"""
Event store backed by a single SQL table (EVENT_STORE_BACKEND=sql).

Sessions are synchronous, so every call runs in FastAPI's threadpool.
The revision check happens inside the inserting transaction and the unique
(stream_name, revision) constraint rejects a concurrent writer that passed the
same check. A lost race surfaces as WrongExpectedRevision for NO_STREAM and
revision preconditions; an ANY append re-reads the head and tries again.
"""

import uuid
from datetime import datetime
from typing import Optional, Sequence

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, OperationalError

from app.models.stored_event import StoredEvent
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

ANY_APPEND_ATTEMPTS = 5   # ANY appends retry a lost race this many times in total


def _to_recorded(row: StoredEvent) -> RecordedEvent:
    return RecordedEvent(
        stream_name=row.stream_name,
        revision=row.revision,
        envelope=EventEnvelope(
            event_id=uuid.UUID(row.event_id),
            event_type=row.event_type,
            data=bytes(row.data),
            metadata=bytes(row.event_metadata or b""),
        ),
    )


class SqlEventStore(EventStore):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    def _current_revision(self, db, stream_name: str) -> Optional[int]:
        return db.execute(
            select(func.max(StoredEvent.revision)).where(StoredEvent.stream_name == stream_name)
        ).scalar()

    def _append(self, stream_name: str, expected: ExpectedRevision,
                envelopes: Sequence[EventEnvelope]) -> int:
        attempts = ANY_APPEND_ATTEMPTS if expected is StreamState.ANY else 1
        for attempt in range(1, attempts + 1):
            db = self._session_factory()
            try:
                current = self._current_revision(db, stream_name)
                if expected is StreamState.NO_STREAM and current is not None:
                    raise WrongExpectedRevision(stream_name, expected, current)
                if isinstance(expected, int) and expected != current:
                    raise WrongExpectedRevision(stream_name, expected, current)

                revision = -1 if current is None else current
                now = datetime.utcnow()
                for envelope in envelopes:
                    revision += 1
                    db.add(StoredEvent(
                        stream_name=stream_name,
                        revision=revision,
                        event_id=str(envelope.event_id),
                        event_type=envelope.event_type,
                        data=envelope.data,
                        event_metadata=envelope.metadata,
                        created_at=now,
                    ))
                db.commit()
                return revision
            except IntegrityError as e:
                db.rollback()
                # Another writer took the same revision between our check and commit
                if expected is not StreamState.ANY:
                    raise WrongExpectedRevision(stream_name, expected, self._current_revision(db, stream_name)) from e
                if attempt == attempts:
                    raise StoreUnavailable(
                        f"Gave up appending to '{stream_name}' after {attempts} lost races"
                    ) from e
                logger.debug(f"Lost append race on '{stream_name}' (attempt {attempt}), retrying")
            except OperationalError as e:
                db.rollback()
                raise StoreUnavailable(f"Database unavailable appending to '{stream_name}': {e}") from e
            finally:
                db.close()


    def _read(self, stream_name: str, backwards: bool,
              from_revision: Optional[int], limit: Optional[int]) -> list:
        db = self._session_factory()
        try:
            q = select(StoredEvent).where(StoredEvent.stream_name == stream_name)
            if backwards:
                if from_revision is not None:
                    q = q.where(StoredEvent.revision <= from_revision)
                q = q.order_by(StoredEvent.revision.desc())
            else:
                if from_revision is not None:
                    q = q.where(StoredEvent.revision >= from_revision)
                q = q.order_by(StoredEvent.revision)
            if limit is not None:
                q = q.limit(limit)
            rows = db.execute(q).scalars().all()

            if not rows and self._current_revision(db, stream_name) is None:
                raise StreamNotFound(stream_name)
            return [_to_recorded(row) for row in rows]
        except OperationalError as e:
            raise StoreUnavailable(f"Database unavailable reading '{stream_name}': {e}") from e
        finally:
            db.close()

    async def append_to_stream(
        self,
        stream_name: str,
        expected: ExpectedRevision,
        envelopes: Sequence[EventEnvelope],
    ) -> int:
        return await run_in_threadpool(self._append, stream_name, expected, envelopes)

    async def read_stream(
        self,
        stream_name: str,
        backwards: bool = False,
        from_revision: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        events = await run_in_threadpool(self._read, stream_name, backwards, from_revision, limit)
        for recorded in events:
            yield recorded

    async def ping(self) -> bool:
        def _ping():
            db = self._session_factory()
            try:
                db.execute(text("SELECT 1"))
                return True
            except OperationalError:
                logger.warning("Database ping failed", exc_info=True)
                return False
            finally:
                db.close()

        return await run_in_threadpool(_ping)
