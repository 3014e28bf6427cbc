"""
Unit tests for statistics aggregation and the bulk degradation path.
"""

import json
from unittest.mock import AsyncMock

import pytest

from core.enums import ExampleCategory
from core.exceptions import CreatorNotFoundError, UnavailableError
from services.stats_service import BulkStatsStrategy, DefaultStatsTier


@pytest.mark.asyncio
async def test_counts_match_corpus(
    stats_service, example_service, alex, style_example_factory, response_example_factory
):
    await example_service.create_style_example(
        alex.id, style_example_factory.payload(category=ExampleCategory.GREETING)
    )
    await example_service.create_style_example(
        alex.id, style_example_factory.payload(category=ExampleCategory.QUESTION)
    )
    await example_service.create_response_example(
        alex.id, response_example_factory.payload(rankings=[5, 3, 1])
    )

    stats = await stats_service.get_stats(alex.id)

    assert stats.style_examples_count == 2
    assert stats.response_examples_count == 1
    assert stats.total_individual_responses == 3
    assert stats.total_examples == 3
    assert stats.style_examples_by_category == {"Greeting": 1, "Question": 1}
    assert stats.response_examples_by_category == {"Question": 1}
    assert len(stats.recent_examples) == 3


@pytest.mark.asyncio
async def test_uncategorized_bucket(stats_service, example_service, alex, style_example_factory):
    await example_service.create_style_example(alex.id, style_example_factory.payload(category=None))
    stats = await stats_service.get_stats(alex.id)
    assert stats.style_examples_by_category == {"Uncategorized": 1}


@pytest.mark.asyncio
async def test_reading_stats_never_creates_profile(stats_service, style_profile_service, alex):
    stats = await stats_service.get_stats(alex.id)
    assert stats.has_style_config is False
    assert await style_profile_service.style_profile_repository.get(alex.id) is None

    await style_profile_service.get_or_create(alex.id)
    assert (await stats_service.get_stats(alex.id)).has_style_config is True


@pytest.mark.asyncio
async def test_missing_creator(stats_service):
    with pytest.raises(CreatorNotFoundError):
        await stats_service.get_stats(4242)


class TestBulkStats:
    @pytest.mark.asyncio
    async def test_every_requested_id_answered(self, stats_service, alex, metrics):
        bulk = await stats_service.get_bulk_stats([alex.id, 999, alex.id])

        assert list(bulk) == [alex.id, 999]
        assert bulk[alex.id].creator_name == "Alex"
        assert bulk[999].creator_name == "Creator 999"
        assert bulk[999].total_examples == 0
        assert metrics.sample("stats_requests_total", {"tier": "aggregated"}) == 1

    @pytest.mark.asyncio
    async def test_empty_request(self, stats_service):
        assert await stats_service.get_bulk_stats([]) == {}

    @pytest.mark.asyncio
    async def test_primary_failure_falls_back_to_defaults(self, alex, metrics):
        primary = AsyncMock()
        primary.name = "aggregated"
        primary.snapshots.side_effect = UnavailableError("database down")
        strategy = BulkStatsStrategy(primary, DefaultStatsTier(), metrics_collector=metrics)

        bulk = await strategy.resolve([alex.id, 7], {alex.id: alex})

        assert bulk[alex.id].creator_name == "Alex"
        assert bulk[alex.id].creator_description == "Fitness coach"
        assert bulk[alex.id].style_examples_count == 0
        assert bulk[7].creator_name == "Creator 7"
        assert metrics.sample("stats_degradations_total", {"error_type": "UnavailableError"}) == 1
        assert metrics.sample("stats_requests_total", {"tier": "default"}) == 1


@pytest.mark.asyncio
async def test_export_json(stats_service, example_service, alex, style_example_factory):
    await example_service.create_style_example(alex.id, style_example_factory.payload())
    document = json.loads(await stats_service.export_stats_json(alex.id))
    assert document["creator_id"] == alex.id
    assert document["style_examples_count"] == 1
    assert "stats_generated_at" in document
