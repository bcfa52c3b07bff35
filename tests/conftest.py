"""
Pytest configuration and shared fixtures.

Every test gets a fresh SQLite database file built from the model metadata,
so the suite runs without a PostgreSQL server.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import engagements.models  # noqa: F401  registers every table on Base.metadata
from engagements.core.permissions import CallerIdentity, Roles
from engagements.db.base import Base
from engagements.models.associate_request import AssociateRequest, FreelancerRecommendation
from engagements.services.realtime import RealtimeChannel

T0 = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: uses the per-test SQLite database")


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingChannel(RealtimeChannel):
    def __init__(self):
        self.published: List[Tuple[uuid.UUID, Dict[str, Any]]] = []

    async def publish(self, user_id, payload):
        self.published.append((user_id, payload))


class FailingChannel(RealtimeChannel):
    async def publish(self, user_id, payload):
        raise ConnectionError("socket closed")


@dataclass
class SeededPair:
    associate_id: uuid.UUID
    freelancer_id: uuid.UUID
    request_id: uuid.UUID

    @property
    def associate(self) -> CallerIdentity:
        return CallerIdentity(user_id=self.associate_id, role=Roles.ASSOCIATE)

    @property
    def freelancer(self) -> CallerIdentity:
        return CallerIdentity(user_id=self.freelancer_id, role=Roles.FREELANCER)


async def seed_request(
    db: AsyncSession,
    associate_id: uuid.UUID = None,
    freelancer_id: uuid.UUID = None,
    recommended: bool = True,
    title: str = "Data Pipeline Build",
) -> SeededPair:
    """Insert a request (and optionally a recommendation) and commit."""
    associate_id = associate_id or uuid.uuid4()
    freelancer_id = freelancer_id or uuid.uuid4()
    request = AssociateRequest(
        associate_id=associate_id,
        title=title,
        description="Build the nightly ingestion pipeline",
        contact_person="Acme Corp",
    )
    db.add(request)
    await db.flush()
    if recommended:
        db.add(FreelancerRecommendation(request_id=request.id, freelancer_id=freelancer_id))
    await db.commit()
    return SeededPair(associate_id=associate_id, freelancer_id=freelancer_id, request_id=request.id)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'engagements.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def pair(db) -> SeededPair:
    return await seed_request(db)
