"""
Style Profile Repository - Data Access Layer
=============================================

Persists the one-per-creator style profile. Creation is get-or-create:
the unique constraint on ``creator_id`` makes concurrent first accesses
converge on a single row.
"""

from typing import Optional, Tuple

from loguru import logger
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import CreatorNotFoundError
from core.models import CreatorStyle, StyleProfile, utcnow
from infrastructure.schema import creator_styles_table
from knowledge.base_repository import BaseRepository, ensure_creator_exists


class StyleProfileRepository(BaseRepository):
    """Repository for creator style profiles."""

    async def get(self, creator_id: int) -> Optional[CreatorStyle]:
        async with self._session("get_style_profile") as session:
            return await self._fetch(session, creator_id)

    async def get_or_create(
        self, creator_id: int, defaults: StyleProfile
    ) -> Tuple[CreatorStyle, bool]:
        """
        Return the stored profile, inserting ``defaults`` when absent.

        Returns:
            (profile, created) where created is True only for the inserting call

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        async with self._session("get_or_create_style_profile") as session:
            await ensure_creator_exists(session, creator_id)
            existing = await self._fetch(session, creator_id)
            if existing is not None:
                return existing, False

            now = utcnow()
            try:
                result = await session.execute(
                    insert(creator_styles_table)
                    .values(
                        creator_id=creator_id,
                        created_at=now,
                        updated_at=now,
                        **self._profile_columns(defaults),
                    )
                    .returning(creator_styles_table)
                )
                created = self._row_to_style(result.one())
            except IntegrityError:
                # Lost the race to a concurrent creator, or the creator vanished
                await session.rollback()
                winner = await self._fetch(session, creator_id)
                if winner is None:
                    raise CreatorNotFoundError(creator_id)
                return winner, False

        logger.info(f"Created default style profile for creator {creator_id}")
        return created, True

    async def replace(self, creator_id: int, profile: StyleProfile) -> CreatorStyle:
        """
        Overwrite every profile field, creating the row if needed.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        async with self._session("replace_style_profile") as session:
            await ensure_creator_exists(session, creator_id)
            now = utcnow()
            columns = self._profile_columns(profile)
            result = await session.execute(
                update(creator_styles_table)
                .where(creator_styles_table.c.creator_id == creator_id)
                .values(**columns, updated_at=now)
            )
            if result.rowcount == 0:
                await session.execute(
                    insert(creator_styles_table).values(
                        creator_id=creator_id, created_at=now, updated_at=now, **columns
                    )
                )
            stored = await self._fetch(session, creator_id)

        logger.info(f"Replaced style profile for creator {creator_id}")
        return stored

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    async def _fetch(self, session: AsyncSession, creator_id: int) -> Optional[CreatorStyle]:
        result = await session.execute(
            select(creator_styles_table).where(creator_styles_table.c.creator_id == creator_id)
        )
        row = result.fetchone()
        return self._row_to_style(row) if row else None

    @staticmethod
    def _profile_columns(profile: StyleProfile) -> dict:
        return profile.model_dump(mode="json", include=set(StyleProfile.model_fields))

    @staticmethod
    def _row_to_style(row) -> CreatorStyle:
        return CreatorStyle.model_validate(dict(row._mapping))


__all__ = ["StyleProfileRepository"]
