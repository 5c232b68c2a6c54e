# scripts/setup/init_db.py
"""
Initialize the SQL event store - creates the stream_events table.
Only needed with EVENT_STORE_BACKEND=sql. Run once before first launch.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, get_engine
from app.config import settings
from sqlalchemy import func, inspect, select, text


def main():
    print("🗄️  Camera Event Store Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    engine = get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables(engine)

    from app.models.stored_event import StoredEvent
    tables = inspect(engine).get_table_names()
    print(f"✅ Tables in database ({len(tables)} total):")
    for t in sorted(tables):
        print(f"   ✓ {t}")

    with engine.connect() as conn:
        streams = conn.execute(select(func.count(func.distinct(StoredEvent.stream_name)))).scalar()
        events = conn.execute(select(func.count(StoredEvent.id))).scalar()
    print(f"\n📊 {events} events in {streams} streams")

    print("\n🎉 Event store ready! Start the backend with EVENT_STORE_BACKEND=sql:")
    print(f"   uvicorn app.main:app --host 0.0.0.0 --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
