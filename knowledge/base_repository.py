"""
Repository Base - Session Scoping & Failure Translation
========================================================

Every repository opens its unit of work through ``_session``: domain errors
raised inside the block pass through untouched, driver and SQL failures
are logged and surfaced as ``UnavailableError``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import CreatorNotFoundError, CreatorStyleException, UnavailableError
from infrastructure.database import DatabaseManager
from infrastructure.schema import creators_table


class BaseRepository:
    """Shared session handling for the SQLAlchemy Core repositories."""

    def __init__(self, database_manager: DatabaseManager):
        """
        Initialize repository with database manager.

        Args:
            database_manager: Database manager for session management
        """
        self.database_manager = database_manager

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self.database_manager.session() as session:
                yield session
        except CreatorStyleException:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database operation '{operation}' failed: {e}")
            raise UnavailableError(
                f"Database operation '{operation}' failed",
                operation=operation,
                cause=e,
            ) from e


async def ensure_creator_exists(session: AsyncSession, creator_id: int) -> None:
    """
    Check the creator row inside the caller's transaction.

    Raises:
        CreatorNotFoundError: If the creator is absent
    """
    result = await session.execute(
        select(creators_table.c.id).where(creators_table.c.id == creator_id)
    )
    if result.scalar_one_or_none() is None:
        raise CreatorNotFoundError(creator_id)


__all__ = ["BaseRepository", "ensure_creator_exists"]
