"""
Database connection and session management.
"""

from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from config.settings import settings
from linking.models import Base


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def use_unicode_lower(engine):
    """
    Replace SQLite's ASCII-only lower() with Python's str.lower on every
    connection, so case-insensitive name lookups fold accented letters the
    way PostgreSQL does. LIKE is covered too, since icontains() lowers both
    operands.
    """
    if engine.url.get_backend_name() != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _register_lower(dbapi_conn, connection_record):
        dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
)
use_unicode_lower(engine)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db():
    """Initialize database tables."""
    database = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
