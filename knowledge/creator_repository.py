"""
Creator Repository - Data Access Layer
========================================

Implements repository pattern for Creator entities with:
- CRUD operations over the creators table
- Filtered, searchable and paginated listings
- Atomic cascading delete of a creator and everything it owns

Design: Single Responsibility - all creator data access goes through this layer.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger
from sqlalchemy import delete, func, insert, or_, select, update

from core.models import Creator, CreatorCreate, utcnow
from infrastructure.schema import (
    creator_responses_table,
    creator_styles_table,
    creators_table,
    response_examples_table,
    style_examples_table,
)
from knowledge.base_repository import BaseRepository
from knowledge.query import LIKE_ESCAPE, ilike_pattern


class CreatorRepository(BaseRepository):
    """
    Repository for Creator entity operations.

    Listings order by newest first with the id as tie-breaker.
    """

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create(self, creator: CreatorCreate) -> Creator:
        """
        Insert a creator row.

        Args:
            creator: Validated creation payload

        Returns:
            Creator with generated ID and timestamps
        """
        async with self._session("create_creator") as session:
            now = utcnow()
            query = (
                insert(creators_table)
                .values(
                    name=creator.name,
                    description=creator.description,
                    avatar_url=creator.avatar_url,
                    is_active=creator.is_active,
                    created_at=now,
                    updated_at=now,
                )
                .returning(creators_table)
            )
            result = await session.execute(query)
            created = self._row_to_creator(result.one())

        logger.info(f"Created creator: {created.name} (ID: {created.id})")
        return created

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_by_id(self, creator_id: int) -> Optional[Creator]:
        async with self._session("get_creator") as session:
            result = await session.execute(
                select(creators_table).where(creators_table.c.id == creator_id)
            )
            row = result.fetchone()

        return self._row_to_creator(row) if row else None

    async def get_many(self, creator_ids: Iterable[int]) -> Dict[int, Creator]:
        """Known creators keyed by id; unknown ids are omitted."""
        ids = list(dict.fromkeys(creator_ids))
        if not ids:
            return {}

        async with self._session("get_creators") as session:
            result = await session.execute(
                select(creators_table).where(creators_table.c.id.in_(ids))
            )
            rows = result.fetchall()

        return {row.id: self._row_to_creator(row) for row in rows}

    def _filtered(self, query, search: Optional[str], is_active: Optional[bool]):
        if search:
            pattern = ilike_pattern(search)
            query = query.where(
                or_(
                    creators_table.c.name.ilike(pattern, escape=LIKE_ESCAPE),
                    creators_table.c.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if is_active is not None:
            query = query.where(creators_table.c.is_active == is_active)
        return query

    async def list(
        self,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Creator], int]:
        """
        One page of creators plus the filtered total.

        Args:
            search: Case-insensitive substring over name and description
            is_active: Activity filter, None for all
            skip: Rows to skip
            limit: Page size

        Returns:
            (creators on the page, total matching creators)
        """
        async with self._session("list_creators") as session:
            count_query = self._filtered(
                select(func.count()).select_from(creators_table), search, is_active
            )
            total = (await session.execute(count_query)).scalar_one()

            page_query = (
                self._filtered(select(creators_table), search, is_active)
                .order_by(creators_table.c.created_at.desc(), creators_table.c.id.desc())
                .offset(skip)
                .limit(limit)
            )
            rows = (await session.execute(page_query)).fetchall()

        return [self._row_to_creator(row) for row in rows], total

    async def list_all(
        self, *, search: Optional[str] = None, is_active: Optional[bool] = None
    ) -> List[Creator]:
        """Every creator matching the filter, in listing order."""
        async with self._session("list_all_creators") as session:
            query = self._filtered(select(creators_table), search, is_active).order_by(
                creators_table.c.created_at.desc(), creators_table.c.id.desc()
            )
            rows = (await session.execute(query)).fetchall()

        return [self._row_to_creator(row) for row in rows]

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def update(self, creator_id: int, changes: Dict[str, Any]) -> Optional[Creator]:
        """
        Apply the given column changes.

        Returns:
            Updated creator, or None if it does not exist
        """
        async with self._session("update_creator") as session:
            query = (
                update(creators_table)
                .where(creators_table.c.id == creator_id)
                .values(**changes, updated_at=utcnow())
            )
            result = await session.execute(query)
            if result.rowcount == 0:
                return None

            row = (
                await session.execute(
                    select(creators_table).where(creators_table.c.id == creator_id)
                )
            ).one()

        updated = self._row_to_creator(row)
        logger.info(f"Updated creator {creator_id}: {sorted(changes)}")
        return updated

    # =========================================================================
    # DELETE OPERATIONS
    # =========================================================================

    async def delete(self, creator_id: int) -> bool:
        """
        Delete a creator with its style profile and both example corpora.

        All rows go in one transaction; foreign keys cascade as well.

        Returns:
            True if the creator existed
        """
        async with self._session("delete_creator") as session:
            response_ids = select(response_examples_table.c.id).where(
                response_examples_table.c.creator_id == creator_id
            )
            await session.execute(
                delete(creator_responses_table).where(
                    creator_responses_table.c.response_example_id.in_(response_ids)
                )
            )
            await session.execute(
                delete(response_examples_table).where(
                    response_examples_table.c.creator_id == creator_id
                )
            )
            await session.execute(
                delete(style_examples_table).where(style_examples_table.c.creator_id == creator_id)
            )
            await session.execute(
                delete(creator_styles_table).where(creator_styles_table.c.creator_id == creator_id)
            )
            result = await session.execute(
                delete(creators_table).where(creators_table.c.id == creator_id)
            )
            deleted = result.rowcount > 0

        if deleted:
            logger.info(f"Deleted creator {creator_id} with profile and examples")
        return deleted

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    @staticmethod
    def _row_to_creator(row) -> Creator:
        return Creator.model_validate(dict(row._mapping))


__all__ = ["CreatorRepository"]
