"""
Pytest configuration and fixtures for Newsdesk tests.
"""
import os
import uuid
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from sqlalchemy import JSON
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Point the app at SQLite before newsdesk.database builds its engine
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CANONICAL_BASE_URL"] = "https://news.example.com"

# IMPORTANT: Patch PostgreSQL types for SQLite compatibility
# Must be done before importing any models
import sqlalchemy.dialects.postgresql as pg_dialect
from sqlalchemy.types import TypeDecorator, CHAR
import uuid as uuid_module

# Custom UUID type that works with SQLite
class SQLiteUUID(TypeDecorator):
    """SQLite-compatible UUID type."""
    impl = CHAR(36)
    cache_ok = True

    def __init__(self, *args, **kwargs):
        super().__init__()

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return uuid_module.UUID(value)
        return value

pg_dialect.JSONB = JSON
pg_dialect.UUID = SQLiteUUID

from newsdesk.core.deps import get_audit_sink
from newsdesk.core.security import create_access_token
from newsdesk.database import get_db
from newsdesk.models.base import Base
from newsdesk.models.site import Site, SiteAccessGrant, SiteRole
from newsdesk.models.user import User, UserStatus

# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SUPER_ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
EDITOR_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
SITE_ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
OUTSIDER_ID = uuid.UUID("00000000-0000-0000-0000-000000000004")
INACTIVE_ID = uuid.UUID("00000000-0000-0000-0000-000000000005")

SITE_A_ID = uuid.UUID("00000000-0000-0000-0000-00000000000a")
SITE_B_ID = uuid.UUID("00000000-0000-0000-0000-00000000000b")


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def db_session_with_data(db_session: AsyncSession) -> AsyncSession:
    """Two sites, A (default) and B, and one user per privilege tier.

    - super admin: no grants
    - editor: EDITOR on A
    - site admin: SITE_ADMIN on B
    - outsider: no grants
    - inactive: EDITOR on A, account disabled
    """
    db_session.add_all([
        User(id=SUPER_ADMIN_ID, email="root@example.com", name="Root", is_super_admin=True),
        User(id=EDITOR_ID, email="editor@example.com", name="Editor"),
        User(id=SITE_ADMIN_ID, email="admin-b@example.com", name="Admin B"),
        User(id=OUTSIDER_ID, email="outsider@example.com", name="Outsider"),
        User(
            id=INACTIVE_ID,
            email="gone@example.com",
            name="Gone",
            status=UserStatus.INACTIVE,
        ),
        Site(id=SITE_A_ID, name="Alpha", slug="alpha", is_default=True),
        Site(id=SITE_B_ID, name="Beta", slug="beta"),
    ])
    await db_session.flush()

    db_session.add_all([
        SiteAccessGrant(user_id=EDITOR_ID, site_id=SITE_A_ID, role=SiteRole.EDITOR),
        SiteAccessGrant(user_id=SITE_ADMIN_ID, site_id=SITE_B_ID, role=SiteRole.SITE_ADMIN),
        SiteAccessGrant(user_id=INACTIVE_ID, site_id=SITE_A_ID, role=SiteRole.EDITOR),
    ])
    await db_session.commit()

    return db_session


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_audit_sink():
    """Audit sink that records calls instead of writing rows."""
    sink = MagicMock()
    sink.record = AsyncMock(return_value=None)
    return sink


# ============================================================================
# FastAPI App Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(db_session: AsyncSession, mock_audit_sink) -> FastAPI:
    """Create test FastAPI application."""
    from newsdesk.main import app as main_app

    async def override_get_db():
        yield db_session

    async def override_get_audit_sink():
        return mock_audit_sink

    main_app.dependency_overrides[get_db] = override_get_db
    main_app.dependency_overrides[get_audit_sink] = override_get_audit_sink

    yield main_app

    main_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app: FastAPI) -> TestClient:
    """Create synchronous test client."""
    return TestClient(app)


@pytest_asyncio.fixture(scope="function")
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Authentication Fixtures
# ============================================================================

def _bearer(user_id: uuid.UUID) -> dict:
    token = create_access_token(data={"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def super_admin_headers() -> dict:
    return _bearer(SUPER_ADMIN_ID)


@pytest.fixture
def editor_headers() -> dict:
    return _bearer(EDITOR_ID)


@pytest.fixture
def site_admin_headers() -> dict:
    return _bearer(SITE_ADMIN_ID)


@pytest.fixture
def outsider_headers() -> dict:
    return _bearer(OUTSIDER_ID)


@pytest.fixture
def inactive_headers() -> dict:
    return _bearer(INACTIVE_ID)
