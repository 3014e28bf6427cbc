"""
Statistics Repository - Aggregation Queries
============================================

Computes creator statistics straight from the corpora with grouped SQL
counts. Nothing here is persisted; every call reads current rows.
"""

from collections import defaultdict
from typing import Dict, Iterable, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.constants import UNCATEGORIZED
from core.enums import ExampleKind
from core.models import Creator, CreatorStatsSnapshot, RecentExample, utcnow
from infrastructure.schema import (
    creator_responses_table,
    creator_styles_table,
    creators_table,
    response_examples_table,
    style_examples_table,
)
from knowledge.base_repository import BaseRepository


class StatsRepository(BaseRepository):
    """Grouped aggregation over creators, profiles and both example corpora."""

    async def aggregate(
        self, creator_ids: Iterable[int], recent_limit: int = 5
    ) -> Dict[int, CreatorStatsSnapshot]:
        """
        Snapshots for every id that names an existing creator.

        Args:
            creator_ids: Creators to summarise
            recent_limit: Number of most recent examples to include

        Returns:
            Mapping of creator id to snapshot; unknown ids are absent
        """
        ids = list(dict.fromkeys(creator_ids))
        if not ids:
            return {}

        async with self._session("aggregate_stats") as session:
            creators = await self._creators(session, ids)
            known = list(creators)
            if not known:
                return {}

            style_by_category = await self._count_by_category(session, style_examples_table, known)
            response_by_category = await self._count_by_category(
                session, response_examples_table, known
            )
            candidate_counts = await self._candidate_counts(session, known)
            with_profile = await self._with_profile(session, known)
            recent = {
                creator_id: await self._recent_examples(session, creator_id, recent_limit)
                for creator_id in known
            }

        generated_at = utcnow()
        snapshots: Dict[int, CreatorStatsSnapshot] = {}
        for creator_id, creator in creators.items():
            style_counts = style_by_category.get(creator_id, {})
            response_counts = response_by_category.get(creator_id, {})
            style_total = sum(style_counts.values())
            response_total = sum(response_counts.values())
            snapshots[creator_id] = CreatorStatsSnapshot(
                creator_id=creator_id,
                creator_name=creator.name,
                creator_active=creator.is_active,
                creator_description=creator.description,
                style_examples_count=style_total,
                response_examples_count=response_total,
                total_individual_responses=candidate_counts.get(creator_id, 0),
                total_examples=style_total + response_total,
                style_examples_by_category=style_counts,
                response_examples_by_category=response_counts,
                has_style_config=creator_id in with_profile,
                recent_examples=recent[creator_id],
                stats_generated_at=generated_at,
            )
        return snapshots

    # =========================================================================
    # QUERY HELPERS
    # =========================================================================

    @staticmethod
    async def _creators(session: AsyncSession, ids: List[int]) -> Dict[int, Creator]:
        rows = (
            await session.execute(select(creators_table).where(creators_table.c.id.in_(ids)))
        ).fetchall()
        return {row.id: Creator.model_validate(dict(row._mapping)) for row in rows}

    @staticmethod
    async def _count_by_category(
        session: AsyncSession, table, ids: List[int]
    ) -> Dict[int, Dict[str, int]]:
        rows = (
            await session.execute(
                select(table.c.creator_id, table.c.category, func.count())
                .where(table.c.creator_id.in_(ids))
                .group_by(table.c.creator_id, table.c.category)
            )
        ).fetchall()
        counts: Dict[int, Dict[str, int]] = defaultdict(dict)
        for creator_id, category, count in rows:
            bucket = category or UNCATEGORIZED
            counts[creator_id][bucket] = counts[creator_id].get(bucket, 0) + count
        return counts

    @staticmethod
    async def _candidate_counts(session: AsyncSession, ids: List[int]) -> Dict[int, int]:
        rows = (
            await session.execute(
                select(response_examples_table.c.creator_id, func.count(creator_responses_table.c.id))
                .select_from(
                    response_examples_table.join(
                        creator_responses_table,
                        creator_responses_table.c.response_example_id == response_examples_table.c.id,
                    )
                )
                .where(response_examples_table.c.creator_id.in_(ids))
                .group_by(response_examples_table.c.creator_id)
            )
        ).fetchall()
        return {creator_id: count for creator_id, count in rows}

    @staticmethod
    async def _with_profile(session: AsyncSession, ids: List[int]) -> set:
        result = await session.execute(
            select(creator_styles_table.c.creator_id).where(creator_styles_table.c.creator_id.in_(ids))
        )
        return set(result.scalars().all())

    @staticmethod
    async def _recent_examples(
        session: AsyncSession, creator_id: int, limit: int
    ) -> List[RecentExample]:
        if limit <= 0:
            return []

        recent: List[RecentExample] = []
        for kind, table in (
            (ExampleKind.STYLE, style_examples_table),
            (ExampleKind.RESPONSE, response_examples_table),
        ):
            rows = (
                await session.execute(
                    select(table.c.id, table.c.fan_message, table.c.category, table.c.created_at)
                    .where(table.c.creator_id == creator_id)
                    .order_by(table.c.created_at.desc(), table.c.id.desc())
                    .limit(limit)
                )
            ).fetchall()
            recent.extend(
                RecentExample(
                    id=row.id,
                    kind=kind,
                    fan_message=row.fan_message,
                    category=row.category,
                    created_at=row.created_at,
                )
                for row in rows
            )

        recent.sort(key=lambda item: (item.created_at, item.id), reverse=True)
        return recent[:limit]


__all__ = ["StatsRepository"]
