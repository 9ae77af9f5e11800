"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh SQLite file database. The HTTP client overrides
`get_db` with a new session per request that commits or rolls back exactly
like the real dependency, while `db_session` is a separate session the
tests use for seeding and assertions.
"""

import os

# Must be set before the app (and its cached settings) is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db, session_scope
from app.core.security import Identity, create_identity_token, hash_password
from app.models.user import User
from app.models.event import Event
from app.models.rsvp import RSVP


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Create tables in a throwaway database file, drop it afterwards."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own transactional session."""

    async def override_get_db():
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, name: str, email: str, role: str) -> User:
    user = User(
        name=name,
        email=email,
        hashed_password=hash_password("testpassword123"),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def _create_event(db: AsyncSession, organizer: User, **overrides) -> Event:
    values = {
        "title": "Test Meetup",
        "description": "A test event",
        "date": datetime.now(timezone.utc) + timedelta(days=30),
        "time": "18:00",
        "location": "Test Venue",
        "capacity": None,
        "is_public": True,
        "attendee_count": 0,
    }
    values.update(overrides)
    event = Event(organizer_id=organizer.id, **values)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


def auth_headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_identity_token(user.id, user.role)}"}


def identity_for(user: User) -> Identity:
    return Identity(id=user.id, role=user.role)


async def count_rsvps(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(RSVP).where(
            RSVP.event_id == event_id, RSVP.status == "attending"
        )
    )
    return result.scalar_one()


async def stored_attendee_count(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(select(Event.attendee_count).where(Event.id == event_id))
    return result.scalar_one()


@pytest_asyncio.fixture
async def organizer(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "Olivia Organizer", "organizer@example.com", "organizer")


@pytest_asyncio.fixture
async def other_organizer(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "Oscar Organizer", "oscar@example.com", "organizer")


@pytest_asyncio.fixture
async def attendee(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "Alice Attendee", "alice@example.com", "attendee")


@pytest_asyncio.fixture
async def second_attendee(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "Bob Attendee", "bob@example.com", "attendee")


@pytest_asyncio.fixture
async def organizer_headers(organizer: User) -> dict:
    return auth_headers_for(organizer)


@pytest_asyncio.fixture
async def attendee_headers(attendee: User) -> dict:
    return auth_headers_for(attendee)


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, organizer: User) -> Event:
    """Public upcoming event without a capacity limit."""
    return await _create_event(db_session, organizer)


@pytest_asyncio.fixture
async def single_place_event(db_session: AsyncSession, organizer: User) -> Event:
    return await _create_event(db_session, organizer, title="Tiny Workshop", capacity=1)


@pytest_asyncio.fixture
async def past_event(db_session: AsyncSession, organizer: User) -> Event:
    return await _create_event(
        db_session,
        organizer,
        title="Yesterday's Talk",
        date=datetime.now(timezone.utc) - timedelta(days=1),
    )


@pytest_asyncio.fixture
async def private_event(db_session: AsyncSession, organizer: User) -> Event:
    return await _create_event(db_session, organizer, title="Team Offsite", is_public=False)
