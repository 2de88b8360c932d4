from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from leavepoint.db import get_session
from leavepoint.main import app
from leavepoint.models import SQLModel
from leavepoint.schemas.assignment import AssignmentRecord
from leavepoint.services.assignment import InMemoryAssignmentProvider, set_assignment_provider
from leavepoint.services.notification import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    set_notification_sink,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

CSP_EMAIL = "csp@zimworx.com"
JANE = AssignmentRecord(
    team_member="Jane Doe",
    team_member_email="jane.doe@zimworx.org",
    csp=CSP_EMAIL,
    client_name="Acme Logistics",
    department="Operations",
)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a fresh engine per test and ensure tables exist.

    The default in-memory SQLite database lives as long as the engine's
    single pooled connection.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        _engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        _engine = create_async_engine(TEST_DATABASE_URL)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def assignments() -> Iterator[InMemoryAssignmentProvider]:
    """Seed the assignment table with Jane Doe's CSP for every test."""
    provider = InMemoryAssignmentProvider([JANE])
    set_assignment_provider(provider)
    yield provider
    set_assignment_provider(InMemoryAssignmentProvider())


@pytest.fixture(autouse=True)
def sink() -> Iterator[InMemoryNotificationSink]:
    """Capture published lifecycle events."""
    captured = InMemoryNotificationSink()
    set_notification_sink(captured)
    yield captured
    set_notification_sink(LoggingNotificationSink())
