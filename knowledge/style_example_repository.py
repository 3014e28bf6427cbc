"""
Style Example Repository - Data Access Layer
=============================================

Fan message / creator reply pairs. Listing is server-driven: the filter,
the COUNT and the skip/limit window are all evaluated in SQL.
"""

from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy import delete, func, insert, or_, select, update

from core.enums import ExampleCategory
from core.models import StyleExample, StyleExampleCreate, utcnow
from infrastructure.schema import style_examples_table
from knowledge.base_repository import BaseRepository, ensure_creator_exists
from knowledge.query import LIKE_ESCAPE, ilike_pattern

_table = style_examples_table


class StyleExampleRepository(BaseRepository):
    """Repository for style examples."""

    async def create(self, creator_id: int, example: StyleExampleCreate) -> StyleExample:
        """
        Insert one example after re-checking its creator in the same transaction.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        async with self._session("create_style_example") as session:
            await ensure_creator_exists(session, creator_id)
            now = utcnow()
            result = await session.execute(
                insert(_table)
                .values(
                    creator_id=creator_id,
                    fan_message=example.fan_message,
                    creator_response=example.creator_response,
                    category=example.category.value if example.category else None,
                    created_at=now,
                    updated_at=now,
                )
                .returning(_table)
            )
            created = self._row_to_example(result.one())

        logger.debug(f"Created style example {created.id} for creator {creator_id}")
        return created

    async def get(self, creator_id: int, example_id: int) -> Optional[StyleExample]:
        async with self._session("get_style_example") as session:
            result = await session.execute(
                select(_table).where(_table.c.id == example_id, _table.c.creator_id == creator_id)
            )
            row = result.fetchone()
        return self._row_to_example(row) if row else None

    @staticmethod
    def _filtered(
        query, creator_id: int, search: Optional[str], category: Optional[ExampleCategory]
    ):
        query = query.where(_table.c.creator_id == creator_id)
        if search:
            pattern = ilike_pattern(search)
            query = query.where(
                or_(
                    _table.c.fan_message.ilike(pattern, escape=LIKE_ESCAPE),
                    _table.c.creator_response.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if category is not None:
            query = query.where(_table.c.category == category.value)
        return query

    async def list(
        self,
        creator_id: int,
        *,
        search: Optional[str] = None,
        category: Optional[ExampleCategory] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[StyleExample], int]:
        """
        One page of a creator's examples plus the filtered total.

        Returns:
            (examples on the page, total matching examples)
        """
        async with self._session("list_style_examples") as session:
            total = (
                await session.execute(
                    self._filtered(
                        select(func.count()).select_from(_table), creator_id, search, category
                    )
                )
            ).scalar_one()
            rows = (
                await session.execute(
                    self._filtered(select(_table), creator_id, search, category)
                    .order_by(_table.c.created_at.desc(), _table.c.id.desc())
                    .offset(skip)
                    .limit(limit)
                )
            ).fetchall()

        return [self._row_to_example(row) for row in rows], total

    async def list_all(
        self,
        creator_id: int,
        *,
        search: Optional[str] = None,
        category: Optional[ExampleCategory] = None,
    ) -> List[StyleExample]:
        async with self._session("list_all_style_examples") as session:
            rows = (
                await session.execute(
                    self._filtered(select(_table), creator_id, search, category).order_by(
                        _table.c.created_at.desc(), _table.c.id.desc()
                    )
                )
            ).fetchall()
        return [self._row_to_example(row) for row in rows]

    async def update(
        self, creator_id: int, example_id: int, changes: Dict[str, Any]
    ) -> Optional[StyleExample]:
        """
        Apply partial changes to an example owned by ``creator_id``.

        Returns:
            Updated example, or None if no such example belongs to the creator

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        values = dict(changes)
        if "category" in values:
            category = values["category"]
            values["category"] = category.value if category else None

        async with self._session("update_style_example") as session:
            await ensure_creator_exists(session, creator_id)
            owned = (_table.c.id == example_id) & (_table.c.creator_id == creator_id)
            result = await session.execute(
                update(_table).where(owned).values(**values, updated_at=utcnow())
            )
            if result.rowcount == 0:
                return None
            row = (await session.execute(select(_table).where(owned))).one()

        return self._row_to_example(row)

    async def delete(self, creator_id: int, example_id: int) -> bool:
        """
        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        async with self._session("delete_style_example") as session:
            await ensure_creator_exists(session, creator_id)
            result = await session.execute(
                delete(_table).where(_table.c.id == example_id, _table.c.creator_id == creator_id)
            )
            return result.rowcount > 0

    @staticmethod
    def _row_to_example(row) -> StyleExample:
        return StyleExample.model_validate(dict(row._mapping))


__all__ = ["StyleExampleRepository"]
