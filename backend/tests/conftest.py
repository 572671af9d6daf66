"""
TripMatch Backend — Test Configuration (conftest.py)
======================================================

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── engine / session_factory: file-backed SQLite (aiosqlite), schema
    │                             created from the models, reference data seeded
    ├── db:                       one AsyncSession on that database
    ├── mock_db_session:          AsyncMock session for pure unit tests
    ├── creator_id / user_id / other_user_id
    ├── png_bytes / jpeg_bytes:   real images rendered with Pillow
    ├── make_event:               factory that creates events through EventService
    └── client:                   HTTPX AsyncClient bound to the app, session
                                  dependency pointed at the test database
"""

import io
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

# Override settings BEFORE any tripmatch import reads them
_TEST_DIR = tempfile.mkdtemp(prefix="tripmatch_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "storage")
os.environ["JWT_SECRET_KEY"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tripmatch.database import Base, dispose_engine, get_db_session
from tripmatch.reference_data import seed_reference_data
from tripmatch.schemas.event import EventCreate
from tripmatch.security import create_access_token
from tripmatch.services.event_service import event_service


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    A fresh SQLite database file per test.

    File-backed rather than :memory: so that several connections (the
    concurrent confirm tests) see the same database.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_reference_data(session)
        await session.commit()
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = row
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Users & data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def creator_id():
    return uuid4()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def other_user_id():
    return uuid4()


def _image_bytes(fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 120, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return _image_bytes("JPEG")


@pytest.fixture
def make_event(db, creator_id):
    """
    Create (and commit) an event through EventService.

    Usage:
        event = await make_event(capacity=2, status="draft")
    """

    async def _make(creator=None, **fields):
        payload = EventCreate(
            **{"title": "Sunday hike", "event_type": "one_day_trip", **fields}
        )
        event = await event_service.create_event(db, creator or creator_id, payload)
        await db.commit()
        return event

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user ID."""

    def _headers(uid):
        return {"Authorization": f"Bearer {create_access_token(uid)}"}

    return _headers


@pytest_asyncio.fixture
async def client(session_factory):
    """
    HTTPX AsyncClient talking to the app in-process through ASGITransport.

    get_db_session is overridden so every request uses the per-test database
    with the same commit/rollback behaviour as production.
    """
    from tripmatch.main import app

    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()
    # /health uses the global engine; drop its connections before the loop closes
    await dispose_engine()
