"""
Response Example Repository - Data Access Layer
================================================

Fan messages with ordered candidate replies. A response example and its
candidates are always written together in one transaction; candidate
``position`` records insertion order.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.enums import ExampleCategory
from core.models import (
    CandidateResponse,
    CandidateResponseCreate,
    ResponseExample,
    ResponseExampleCreate,
    utcnow,
)
from infrastructure.schema import creator_responses_table, response_examples_table
from knowledge.base_repository import BaseRepository, ensure_creator_exists

_examples = response_examples_table
_candidates = creator_responses_table


class ResponseExampleRepository(BaseRepository):
    """Repository for response examples and their candidate responses."""

    async def create(self, creator_id: int, example: ResponseExampleCreate) -> ResponseExample:
        """
        Insert an example with all of its candidates.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        async with self._session("create_response_example") as session:
            await ensure_creator_exists(session, creator_id)
            now = utcnow()
            result = await session.execute(
                insert(_examples)
                .values(
                    creator_id=creator_id,
                    fan_message=example.fan_message,
                    category=example.category.value if example.category else None,
                    created_at=now,
                    updated_at=now,
                )
                .returning(_examples.c.id)
            )
            example_id = result.scalar_one()
            await self._insert_candidates(session, example_id, example.responses)
            created = await self._fetch(session, creator_id, example_id)

        logger.debug(
            f"Created response example {example_id} for creator {creator_id} "
            f"with {len(example.responses)} responses"
        )
        return created

    async def get(self, creator_id: int, example_id: int) -> Optional[ResponseExample]:
        async with self._session("get_response_example") as session:
            return await self._fetch(session, creator_id, example_id)

    async def list_all(
        self, creator_id: int, *, category: Optional[ExampleCategory] = None
    ) -> List[ResponseExample]:
        """
        Every example of a creator, newest first, with candidates loaded.

        Text search is applied by the caller over the loaded set.
        """
        async with self._session("list_response_examples") as session:
            query = select(_examples).where(_examples.c.creator_id == creator_id)
            if category is not None:
                query = query.where(_examples.c.category == category.value)
            query = query.order_by(_examples.c.created_at.desc(), _examples.c.id.desc())
            rows = (await session.execute(query)).fetchall()
            candidates = await self._load_candidates(session, [row.id for row in rows])

        return [self._row_to_example(row, candidates.get(row.id, [])) for row in rows]

    async def update(
        self,
        creator_id: int,
        example_id: int,
        changes: Dict[str, Any],
        responses: Optional[Sequence[CandidateResponseCreate]] = None,
    ) -> Optional[ResponseExample]:
        """
        Apply partial changes; a non-None ``responses`` replaces every candidate.

        Returns:
            Updated example, or None if no such example belongs to the creator

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        values = dict(changes)
        if "category" in values:
            category = values["category"]
            values["category"] = category.value if category else None

        async with self._session("update_response_example") as session:
            await ensure_creator_exists(session, creator_id)
            owned = (_examples.c.id == example_id) & (_examples.c.creator_id == creator_id)
            result = await session.execute(
                update(_examples).where(owned).values(**values, updated_at=utcnow())
            )
            if result.rowcount == 0:
                return None

            if responses is not None:
                await session.execute(
                    delete(_candidates).where(_candidates.c.response_example_id == example_id)
                )
                await self._insert_candidates(session, example_id, responses)

            return await self._fetch(session, creator_id, example_id)

    async def delete(self, creator_id: int, example_id: int) -> bool:
        """
        Delete an example and its candidates.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        async with self._session("delete_response_example") as session:
            await ensure_creator_exists(session, creator_id)
            owned = select(_examples.c.id).where(
                _examples.c.id == example_id, _examples.c.creator_id == creator_id
            )
            await session.execute(
                delete(_candidates).where(_candidates.c.response_example_id.in_(owned))
            )
            result = await session.execute(
                delete(_examples).where(
                    _examples.c.id == example_id, _examples.c.creator_id == creator_id
                )
            )
            return result.rowcount > 0

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    async def _insert_candidates(
        self,
        session: AsyncSession,
        example_id: int,
        responses: Sequence[CandidateResponseCreate],
    ) -> None:
        now = utcnow()
        await session.execute(
            insert(_candidates),
            [
                {
                    "response_example_id": example_id,
                    "response_text": candidate.response_text,
                    "ranking": candidate.ranking,
                    "position": position,
                    "created_at": now,
                }
                for position, candidate in enumerate(responses)
            ],
        )

    async def _load_candidates(
        self, session: AsyncSession, example_ids: List[int]
    ) -> Dict[int, List[CandidateResponse]]:
        grouped: Dict[int, List[CandidateResponse]] = defaultdict(list)
        if not example_ids:
            return grouped
        rows = (
            await session.execute(
                select(_candidates)
                .where(_candidates.c.response_example_id.in_(example_ids))
                .order_by(_candidates.c.response_example_id, _candidates.c.position)
            )
        ).fetchall()
        for row in rows:
            grouped[row.response_example_id].append(
                CandidateResponse(
                    id=row.id,
                    response_text=row.response_text,
                    ranking=row.ranking,
                    position=row.position,
                )
            )
        return grouped

    async def _fetch(
        self, session: AsyncSession, creator_id: int, example_id: int
    ) -> Optional[ResponseExample]:
        row = (
            await session.execute(
                select(_examples).where(
                    _examples.c.id == example_id, _examples.c.creator_id == creator_id
                )
            )
        ).fetchone()
        if row is None:
            return None
        candidates = await self._load_candidates(session, [row.id])
        return self._row_to_example(row, candidates.get(row.id, []))

    @staticmethod
    def _row_to_example(row, responses: List[CandidateResponse]) -> ResponseExample:
        return ResponseExample.model_validate({**dict(row._mapping), "responses": responses})


__all__ = ["ResponseExampleRepository"]
