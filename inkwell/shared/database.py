"""Database setup and configuration using async SQLAlchemy."""

from __future__ import annotations

import logging
from datetime import datetime
from datetime import timezone
from typing import AsyncGenerator
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy import MetaData
from sqlalchemy import event
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from sqlalchemy.types import TypeDecorator

from inkwell.shared.config import Settings

logger = logging.getLogger(__name__)

# Execution option a connection carries when it should take the write lock
# as soon as its transaction begins
WRITE_LOCK_OPTION = "inkwell_write_lock"

# Database naming convention for consistent constraint names
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all database models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime column that always round-trips as UTC.

    SQLite has no native timezone support and hands back naive values;
    naive input is taken to already be UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def create_engine(settings: Settings, **overrides) -> AsyncEngine:
    """Create async SQLAlchemy engine with proper configuration."""
    database_url = settings.effective_database_url

    engine_kwargs = {
        "echo": settings.debug and settings.log_level == "DEBUG",
        "future": True,
    }

    if settings.is_sqlite:
        # One connection per checkout; SQLite serialises writers itself
        engine_kwargs.update({
            "poolclass": NullPool,
            "connect_args": {"check_same_thread": False},
        })
    else:
        engine_kwargs.update({
            "pool_size": settings.pool_size,
            "max_overflow": settings.max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": settings.pool_recycle,
        })
    engine_kwargs.update(overrides)

    engine = create_async_engine(database_url, **engine_kwargs)

    if settings.is_sqlite:
        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Hand transaction control to SQLAlchemy and enable foreign keys."""
            # pysqlite's implicit BEGIN is deferred; BEGIN is emitted below instead
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def do_begin(conn):
            """Start write units with the write lock held, readers deferred."""
            if conn.get_execution_options().get(WRITE_LOCK_OPTION):
                conn.exec_driver_sql("BEGIN IMMEDIATE")
            else:
                conn.exec_driver_sql("BEGIN")

    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session maker shared by every content component."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


class DatabaseManager:
    """Database manager for handling connections and sessions.

    Owned by the process's top-level wiring; components receive the session
    maker (or a gateway built on it) rather than reaching for a global.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    async def init(self) -> None:
        """Initialize database connection."""
        logger.info(f"Initializing database connection to {self.settings.effective_database_url}")
        self.engine = create_engine(self.settings)
        self.session_maker = create_session_maker(self.engine)

        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection successful")
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            await self.close()
            raise

    async def close(self) -> None:
        """Close database connections."""
        if self.engine:
            logger.info("Closing database manager")
            await self.engine.dispose()
            self.engine = None
            self.session_maker = None

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session for read-only use."""
        if not self.session_maker:
            raise RuntimeError("Database manager not initialized")

        async with self.session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create all database tables."""
        if not self.engine:
            raise RuntimeError("Database manager not initialized")

        logger.info("Creating database tables")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all database tables."""
        if not self.engine:
            raise RuntimeError("Database manager not initialized")

        logger.info("Dropping database tables")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
