"""
Database connection and table creation for the SQL event store backend.
The engine is created on first use so the http and memory backends never
need a database driver installed.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings

Base = declarative_base()

_engine = None
_session_factory = None


def get_engine():
    global _engine
    if _engine is None:
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,          # Auto-reconnect if DB connection drops
            pool_size=10,
            max_overflow=20,
            echo=False,                  # Set True to log all SQL queries (debug only)
        )
    return _engine


def get_session_factory():
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_factory


def create_tables(engine=None):
    """
    Creates the event table. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.stored_event import StoredEvent       # noqa

    Base.metadata.create_all(bind=engine or get_engine())
