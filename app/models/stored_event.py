"""
Append-only event table used by the SQL event store backend.
One row per event; (stream_name, revision) is unique so two writers can never
both claim the same position in a stream.
"""

from sqlalchemy import Column, Integer, String, DateTime, LargeBinary, UniqueConstraint
from app.database import Base


class StoredEvent(Base):
    __tablename__ = "stream_events"
    __table_args__ = (
        UniqueConstraint("stream_name", "revision", name="uq_stream_events_stream_revision"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    stream_name = Column(String(200), nullable=False, index=True)
    revision = Column(Integer, nullable=False)
    event_id = Column(String(36), nullable=False, unique=True)
    event_type = Column(String(200), nullable=False, index=True)
    data = Column(LargeBinary, nullable=False)
    event_metadata = Column("metadata", LargeBinary)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<StoredEvent {self.stream_name}@{self.revision} type={self.event_type}>"
