"""Test configuration and fixtures for the Inkwell content store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from unittest.mock import Mock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker

from inkwell.content.deletion import DeletionOperations
from inkwell.content.gateway import WriteGateway
from inkwell.content.insertion import InsertionOperations
from inkwell.content.retrieval import RetrievalOperations
from inkwell.content.services import ContentService
from inkwell.content.update import UpdateOperations
from inkwell.shared.config import BlogDefaults
from inkwell.shared.config import Settings
from inkwell.shared.config import override_settings
from inkwell.shared.database import Base
from inkwell.shared.database import create_engine
from inkwell.shared.database import create_session_maker
from inkwell.shared.date_provider import FixedDateProvider

T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
OWNER_ID = 7


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings pointing at a fresh SQLite file."""
    return override_settings(
        environment="testing",
        test_database_url=f"sqlite+aiosqlite:///{tmp_path / 'inkwell_test.db'}",
        debug=False,
        log_level="DEBUG",
    )


@pytest.fixture
async def test_engine(test_settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with all tables."""
    engine = create_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(test_engine)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def gateway(session_maker) -> WriteGateway:
    return WriteGateway(session_maker)


@pytest.fixture
def retrieval() -> RetrievalOperations:
    return RetrievalOperations()


@pytest.fixture
def insertion(gateway) -> InsertionOperations:
    return InsertionOperations(gateway)


@pytest.fixture
def update_ops(gateway, retrieval) -> UpdateOperations:
    return UpdateOperations(gateway, retrieval)


@pytest.fixture
def deletion(gateway) -> DeletionOperations:
    return DeletionOperations(gateway)


@pytest.fixture
def clock() -> FixedDateProvider:
    return FixedDateProvider(T0)


@pytest.fixture
def content_service(session_maker, clock) -> ContentService:
    return ContentService(session_maker, date_provider=clock)


@pytest.fixture
async def seeded_settings(insertion) -> BlogDefaults:
    """Insert the default blog settings rows."""
    defaults = BlogDefaults()
    await insertion.insert_default_settings(defaults, T0, OWNER_ID)
    return defaults


@pytest.fixture
async def owner_id(insertion) -> int:
    """Insert the blog owner and return its id."""
    return await insertion.insert_user(
        name="Ada",
        slug="ada",
        password="$2a$10$hashedpasswordvalue",
        email="ada@example.com",
        image="/public/images/user-image.jpg",
        cover="/public/images/user-cover.jpg",
        created_at=T0,
        created_by=1,
    )


@pytest.fixture
def read_row(session_maker):
    """Load one row through a fresh session, as an independent reader would."""

    async def _read_row(model, **filters):
        async with session_maker() as session:
            result = await session.execute(select(model).filter_by(**filters))
            return result.scalar_one_or_none()

    return _read_row


@pytest.fixture
def mock_session() -> Mock:
    """Create a mock async session whose calls all succeed."""
    session = Mock(spec=AsyncSession)
    session.begin = AsyncMock()
    session.connection = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.add = Mock()
    return session


# Pytest configuration
def pytest_configure(config):
    """Configure pytest settings."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
