# Camera Event Service - Database Models
# Import all models here for SQLAlchemy discovery

from app.models.stored_event import StoredEvent       # noqa
