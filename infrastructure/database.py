"""
Database Infrastructure & Connection Management
================================================
Async SQLAlchemy client with:
- Connection pooling (asyncpg in production, aiosqlite for local runs)
- Health monitoring
- Schema bootstrap from the Core metadata
- Transaction context managers

Architecture: Repository Pattern + Unit of Work
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlalchemy.pool.impl import AsyncAdaptedQueuePool

from config.settings import DatabaseSettings, get_settings
from core.exceptions import DatabaseConnectionError
from infrastructure.schema import metadata

# Initialize logger
logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Centralized database connection and session management.

    One instance per process, owned by the container; holds the engine and
    the session factory between ``initialize`` and ``close``.
    """

    def __init__(self, database_settings: Optional[DatabaseSettings] = None):
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None
        self._is_initialized: bool = False
        self._settings = database_settings or get_settings().database

    def _engine_options(self) -> dict[str, Any]:
        if self._settings.is_sqlite:
            # In-memory SQLite lives on a single connection
            return {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        return {
            "pool_size": self._settings.pool_size,
            "max_overflow": self._settings.max_overflow,
            "pool_timeout": self._settings.pool_timeout,
            "pool_recycle": self._settings.pool_recycle,
            "pool_pre_ping": True,  # Verify connections before use
            "poolclass": AsyncAdaptedQueuePool,
        }

    async def initialize(self) -> None:
        """
        Initialize database engine and session factory.

        Creates connection pool and registers event listeners.
        Must be called during application startup.
        """
        if self._is_initialized:
            logger.warning("Database already initialized")
            return

        try:
            self._engine = create_async_engine(
                self._settings.url,
                echo=self._settings.echo_sql,
                **self._engine_options(),
            )

            self._register_events()

            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,  # Prevent lazy loading after commit
            )

            await self.health_check()

            if self._settings.create_schema:
                await self.create_schema()

            self._is_initialized = True
            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise DatabaseConnectionError(
                "Failed to initialize database connection",
                host=self._settings.host,
                database=self._settings.database,
                cause=e,
            ) from e

    async def close(self) -> None:
        """
        Close database connections and dispose engine.

        Should be called during application shutdown.
        """
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._is_initialized = False
            logger.info("Database connections closed")

    def _register_events(self) -> None:
        """Register SQLAlchemy event listeners."""
        if not self._engine:
            return

        is_sqlite = self._settings.is_sqlite

        @event.listens_for(self._engine.sync_engine, "connect")
        def receive_connect(dbapi_conn, connection_record):
            """Enable cascading foreign keys on SQLite connections."""
            if is_sqlite:
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
            logger.debug("New database connection established")

    async def create_schema(self) -> None:
        """Create any missing tables from the Core metadata."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Database schema ensured")

    async def health_check(self) -> bool:
        """
        Verify database connectivity.

        Returns:
            True if healthy, raises exception otherwise
        """
        if not self._engine:
            raise DatabaseConnectionError("Database engine not initialized")

        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                if result.scalar() != 1:
                    raise DatabaseConnectionError("Unexpected health check result")
                return True

        except (OperationalError, DBAPIError) as e:
            logger.error(f"Database health check failed: {e}")
            raise DatabaseConnectionError("Database health check failed", cause=e) from e

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide async database session with automatic cleanup.

        Commits when the block exits normally, rolls back otherwise.

        Usage:
            async with db_manager.session() as session:
                result = await session.execute(query)

        Yields:
            AsyncSession: Database session
        """
        if not self._session_factory:
            raise DatabaseConnectionError("Database not initialized")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.debug(f"Session rolled back: {e}")
            raise
        finally:
            await session.close()

    @property
    def engine(self) -> AsyncEngine:
        """Get database engine (raises if not initialized)."""
        if not self._engine:
            raise DatabaseConnectionError("Database engine not initialized")
        return self._engine


__all__ = ["DatabaseManager"]
