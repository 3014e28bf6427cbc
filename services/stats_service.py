"""
Statistics Service: Creator Corpus Aggregation

Computes per-creator statistics fresh from the corpora and serves bulk
requests through a two-tier strategy:

    AggregatedStatsTier  grouped SQL aggregation (primary)
    DefaultStatsTier     zeroed snapshots from already known creators (fallback)

A bulk request always answers with one snapshot per requested id.

Design Pattern: Strategy + Service Layer
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional

from loguru import logger

from config.settings import CorpusSettings, get_settings
from core.exceptions import CreatorNotFoundError
from core.models import Creator, CreatorStatsSnapshot
from infrastructure.monitoring import MetricsCollector
from knowledge.stats_repository import StatsRepository


class StatsTier(ABC):
    """One way of producing statistics snapshots."""

    name: str = "tier"

    @abstractmethod
    async def snapshots(
        self, creator_ids: List[int], known_creators: Mapping[int, Creator]
    ) -> Dict[int, CreatorStatsSnapshot]:
        """Snapshots for as many of ``creator_ids`` as this tier can serve."""


class AggregatedStatsTier(StatsTier):
    """Primary tier: grouped counts straight from the database."""

    name = "aggregated"

    def __init__(self, stats_repository: StatsRepository, recent_limit: int):
        self.stats_repository = stats_repository
        self.recent_limit = recent_limit

    async def snapshots(
        self, creator_ids: List[int], known_creators: Mapping[int, Creator]
    ) -> Dict[int, CreatorStatsSnapshot]:
        return await self.stats_repository.aggregate(creator_ids, self.recent_limit)


class DefaultStatsTier(StatsTier):
    """Fallback tier: zeroed snapshots labelled from known creator records."""

    name = "default"

    async def snapshots(
        self, creator_ids: List[int], known_creators: Mapping[int, Creator]
    ) -> Dict[int, CreatorStatsSnapshot]:
        return {
            creator_id: CreatorStatsSnapshot.empty(known_creators.get(creator_id), creator_id)
            for creator_id in creator_ids
        }


class BulkStatsStrategy:
    """
    Serve bulk statistics from the primary tier, degrading to the fallback.

    Ids the primary tier does not know get the fallback snapshot. If the
    primary tier fails, the failure is logged and counted and the fallback
    serves the whole request.
    """

    def __init__(
        self,
        primary: StatsTier,
        fallback: StatsTier,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.metrics = metrics_collector

    async def resolve(
        self, creator_ids: Iterable[int], known_creators: Optional[Mapping[int, Creator]] = None
    ) -> Dict[int, CreatorStatsSnapshot]:
        ids = list(dict.fromkeys(creator_ids))
        known = known_creators or {}
        if not ids:
            return {}

        try:
            served = await self.primary.snapshots(ids, known)
            tier = self.primary.name
        except Exception as e:
            logger.warning(
                f"Bulk stats degraded to '{self.fallback.name}' tier for {len(ids)} creators: {e}"
            )
            if self.metrics:
                self.metrics.record_stats_degradation(type(e).__name__)
            served = {}
            tier = self.fallback.name

        missing = [creator_id for creator_id in ids if creator_id not in served]
        if missing:
            served.update(await self.fallback.snapshots(missing, known))

        if self.metrics:
            self.metrics.record_stats_tier(tier)
        return {creator_id: served[creator_id] for creator_id in ids}


class StatsService:
    """Statistics aggregator for single and bulk requests."""

    def __init__(
        self,
        stats_repository: StatsRepository,
        metrics_collector: Optional[MetricsCollector] = None,
        corpus_settings: Optional[CorpusSettings] = None,
    ):
        self.stats_repository = stats_repository
        self.corpus_settings = corpus_settings or get_settings().corpus
        self.bulk_strategy = BulkStatsStrategy(
            primary=AggregatedStatsTier(
                stats_repository, self.corpus_settings.recent_examples_limit
            ),
            fallback=DefaultStatsTier(),
            metrics_collector=metrics_collector,
        )
        logger.debug("StatsService initialized")

    async def get_stats(self, creator_id: int) -> CreatorStatsSnapshot:
        """
        Fresh snapshot for one creator; reading never creates a style profile.

        Raises:
            CreatorNotFoundError: If the creator does not exist
            UnavailableError: If the database cannot be read
        """
        snapshots = await self.stats_repository.aggregate(
            [creator_id], self.corpus_settings.recent_examples_limit
        )
        if creator_id not in snapshots:
            raise CreatorNotFoundError(creator_id)
        return snapshots[creator_id]

    async def get_bulk_stats(
        self,
        creator_ids: Iterable[int],
        known_creators: Optional[Mapping[int, Creator]] = None,
    ) -> Dict[int, CreatorStatsSnapshot]:
        """Complete map of id to snapshot; never raises for data problems."""
        return await self.bulk_strategy.resolve(creator_ids, known_creators)

    async def export_stats_json(self, creator_id: int) -> str:
        """Snapshot as a JSON document keyed by the snapshot field names."""
        snapshot = await self.get_stats(creator_id)
        return snapshot.model_dump_json(indent=2)


__all__ = [
    "StatsTier",
    "AggregatedStatsTier",
    "DefaultStatsTier",
    "BulkStatsStrategy",
    "StatsService",
]
