"""
Pytest configuration for Mission Control backend tests.

Each test gets its own in-memory SQLite database built from the ORM metadata.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-mission-control-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mission_control.core.database import get_db
from mission_control.core.security import create_access_token
from mission_control.main import app
from mission_control.models import Base
from mission_control.schemas.common import Actor
from mission_control.schemas.workspace import WorkspaceCreateRequest
from mission_control.services.workspace_service import WorkspaceService


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Actors and seed data
# ---------------------------------------------------------------------------

@pytest.fixture
def owner() -> Actor:
    return Actor(id="user-owner", name="Olivia Owner", email="owner@example.com")


@pytest.fixture
def outsider() -> Actor:
    return Actor(id="user-outsider", name="Oscar Outsider", email="outsider@example.com")


@pytest.fixture
async def workspace(db, owner):
    """The first workspace (and therefore the default), owned by ``owner``."""
    return await WorkspaceService(db).create(
        WorkspaceCreateRequest(name="Acme", slug="acme"), owner=owner
    )


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def auth_headers():
    """Build a bearer header for an actor."""
    def _headers(actor: Actor) -> dict[str, str]:
        token = create_access_token(actor.id, email=actor.email, name=actor.name)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
