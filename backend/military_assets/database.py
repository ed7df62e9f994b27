"""Database engine, session factory and declarative base."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .config import settings


def enable_sqlite_foreign_keys(engine) -> None:
    """SQLite ignores ON DELETE rules unless the pragma is set per connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _create_engine():
    if settings.DATABASE_URL.startswith("sqlite"):
        # FastAPI runs sync handlers on a threadpool; SQLite connections must be shareable.
        sqlite_engine = create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
            future=True,
        )
        enable_sqlite_foreign_keys(sqlite_engine)
        return sqlite_engine
    return create_engine(
        settings.DATABASE_URL,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        future=True,
    )


engine = _create_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """Yield a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
