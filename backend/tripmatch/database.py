"""
TripMatch Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
How:   One engine per process with connection pooling. Each request gets its
       own session which commits on success and rolls back on any error.
Who:   Route handlers receive sessions via Depends(get_db_session); services
       receive the session as their first argument.

Connection Pooling:
    pool_size=20 / max_overflow=10 for PostgreSQL. SQLite URLs (used by the
    test-suite) fall back to SQLAlchemy's default pool for that dialect.
"""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import DateTime
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from tripmatch.config import settings


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    TIMESTAMP WITH TIME ZONE that always round-trips as aware UTC datetimes.

    PostgreSQL returns aware values already. SQLite stores no offset, so
    naive values coming back are tagged as UTC here.
    """

    impl = DateTime
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(timezone=True)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def engine_options(database_url: str) -> Dict[str, Any]:
    """Keyword arguments for create_async_engine, tuned per dialect."""
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    return options


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

# expire_on_commit=False: attributes stay readable after commit without a
# lazy reload (which is not allowed under asyncio)
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata is what Alembic tracks."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    On success the transaction is committed; on any exception it is rolled
    back and the exception re-raised for the global handlers.

    Example:
        @router.get("/events")
        async def list_events(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes every pooled connection. Called on application shutdown."""
    await engine.dispose()
