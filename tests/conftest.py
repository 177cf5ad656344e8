"""Test fixtures for the meeting API.

Provides:
- In-memory SQLite engine (aiosqlite) with all tables created
- MeetingRepository bound to that engine
- Seeded users: a superAdmin, three regular users, one soft-deleted user
- FastAPI app wired to the real repository, with a recording notification sender
- Async HTTP client against that app
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from src.app.api.deps import get_db
from src.app.core.database import Base
from src.app.main import create_app
from src.app.meetings import models as _meeting_models  # noqa: F401
from src.app.meetings.repository import MeetingRepository
from src.app.models.user import User
from tests.factories import RecordingSender


# ── Database ─────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    async def _factory() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session

    return _factory


@pytest.fixture
def repo(session_factory) -> MeetingRepository:
    return MeetingRepository(session_factory=session_factory)


@pytest_asyncio.fixture
async def users(engine) -> dict[str, User]:
    """Seed users keyed by short name."""
    seeded = {
        "admin": User(id=uuid.uuid4(), first_name="Ada", last_name="Admin",
                      email="ada@example.com", role="superAdmin"),
        "alice": User(id=uuid.uuid4(), first_name="Alice", last_name="Archer",
                      email="alice@example.com"),
        "bob": User(id=uuid.uuid4(), first_name="Bob", last_name="Baker",
                    email="bob@example.com"),
        "carol": User(id=uuid.uuid4(), first_name="Carol", last_name="Cole",
                      email="carol@example.com"),
        "gone": User(id=uuid.uuid4(), first_name="Gus", last_name="Gone",
                     email="gus@example.com", deleted=True),
    }
    async with AsyncSession(engine, expire_on_commit=False) as session:
        session.add_all(seeded.values())
        await session.commit()
    return seeded


# ── Application ──────────────────────────────────────────────────────────────


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def app(repo, session_factory, sender):
    application = create_app()
    application.dependency_overrides[get_db] = session_factory
    application.state.meeting_repository = repo
    application.state.notification_sender = sender
    return application


@pytest_asyncio.fixture
async def client(app, users) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
