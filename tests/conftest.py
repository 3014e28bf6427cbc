"""
Pytest Configuration and Fixture Library

Test infrastructure providing:
- A fresh in-memory SQLite database per test (aiosqlite, FK cascades on)
- Repository and service fixtures wired the way the container wires them
- Reusable test data factories
- FastAPI test clients with and without the auth override

Design Pattern: Test Data Builder + Fixture Factory
"""

import os
import random
from typing import AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Set test environment variables before importing any modules
os.environ.update(
    {
        "ENVIRONMENT": "development",
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "DB_CREATE_SCHEMA": "true",
        "SECRET_KEY": "test-secret-key-with-enough-entropy-0123456789",
        "MONITORING_LOG_LEVEL": "WARNING",
        "MONITORING_LOG_FORMAT": "text",
    }
)

from config.settings import CorpusSettings, DatabaseSettings
from core.enums import ExampleCategory
from core.models import (
    CandidateResponseCreate,
    Creator,
    CreatorCreate,
    ResponseExampleCreate,
    StyleExampleCreate,
)
from infrastructure.database import DatabaseManager
from infrastructure.monitoring import MetricsCollector
from knowledge.creator_repository import CreatorRepository
from knowledge.response_example_repository import ResponseExampleRepository
from knowledge.stats_repository import StatsRepository
from knowledge.style_example_repository import StyleExampleRepository
from knowledge.style_profile_repository import StyleProfileRepository
from services.bulk_service import BulkService
from services.creator_service import CreatorService
from services.example_service import ExampleService
from services.stats_service import StatsService
from services.style_profile_service import StyleProfileService

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseManager, None]:
    """Initialized database manager over a private in-memory SQLite database."""
    manager = DatabaseManager(DatabaseSettings())
    await manager.initialize()
    yield manager
    await manager.close()


@pytest.fixture
def corpus_settings() -> CorpusSettings:
    return CorpusSettings()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Collector with its own registry, isolated from other tests."""
    return MetricsCollector()


# ============================================================================
# REPOSITORY & SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def creator_repository(database) -> CreatorRepository:
    return CreatorRepository(database)


@pytest.fixture
def style_profile_repository(database) -> StyleProfileRepository:
    return StyleProfileRepository(database)


@pytest.fixture
def style_example_repository(database) -> StyleExampleRepository:
    return StyleExampleRepository(database)


@pytest.fixture
def response_example_repository(database) -> ResponseExampleRepository:
    return ResponseExampleRepository(database)


@pytest.fixture
def stats_repository(database) -> StatsRepository:
    return StatsRepository(database)


@pytest.fixture
def creator_service(creator_repository, corpus_settings) -> CreatorService:
    return CreatorService(creator_repository, corpus_settings=corpus_settings)


@pytest.fixture
def style_profile_service(style_profile_repository) -> StyleProfileService:
    return StyleProfileService(style_profile_repository)


@pytest.fixture
def example_service(
    creator_repository,
    style_example_repository,
    response_example_repository,
    metrics,
    corpus_settings,
) -> ExampleService:
    return ExampleService(
        creator_repository,
        style_example_repository,
        response_example_repository,
        metrics_collector=metrics,
        corpus_settings=corpus_settings,
    )


@pytest.fixture
def stats_service(stats_repository, metrics, corpus_settings) -> StatsService:
    return StatsService(stats_repository, metrics_collector=metrics, corpus_settings=corpus_settings)


@pytest.fixture
def bulk_service(
    example_service, creator_service, stats_service, metrics, corpus_settings
) -> BulkService:
    return BulkService(
        example_service,
        creator_service,
        stats_service,
        metrics_collector=metrics,
        corpus_settings=corpus_settings,
    )


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


class CreatorFactory:
    """Factory for creator registration payloads."""

    @staticmethod
    def payload(name: Optional[str] = None, **kwargs) -> CreatorCreate:
        return CreatorCreate(
            name=name or f"Creator {random.randint(1000, 9999)}",
            **kwargs,
        )


class StyleExampleFactory:
    @staticmethod
    def payload(
        fan_message: str = "hey, love your posts!",
        creator_response: str = "aw thank u so much",
        category: Optional[ExampleCategory] = ExampleCategory.COMPLIMENT,
    ) -> StyleExampleCreate:
        return StyleExampleCreate(
            fan_message=fan_message, creator_response=creator_response, category=category
        )


class ResponseExampleFactory:
    """Factory for response examples with ranked candidates."""

    @staticmethod
    def payload(
        fan_message: str = "what are you up to tonight?",
        category: Optional[ExampleCategory] = ExampleCategory.QUESTION,
        rankings: Optional[List[Optional[int]]] = None,
    ) -> ResponseExampleCreate:
        rankings = rankings if rankings is not None else [5, 3, 1]
        return ResponseExampleCreate(
            fan_message=fan_message,
            category=category,
            responses=[
                CandidateResponseCreate(response_text=f"candidate {i}", ranking=ranking)
                for i, ranking in enumerate(rankings)
            ],
        )


@pytest.fixture
def creator_factory() -> CreatorFactory:
    return CreatorFactory()


@pytest.fixture
def style_example_factory() -> StyleExampleFactory:
    return StyleExampleFactory()


@pytest.fixture
def response_example_factory() -> ResponseExampleFactory:
    return ResponseExampleFactory()


@pytest_asyncio.fixture
async def alex(creator_service) -> Creator:
    """A registered creator named Alex."""
    return await creator_service.create_creator(name="Alex", description="Fitness coach")


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================


def _reset_container() -> None:
    from container import container

    container.database.reset()
    container.metrics.reset()


@pytest.fixture
def api_client():
    """
    FastAPI test client with the auth dependency overridden.

    The lifespan initializes a fresh in-memory database for every test.
    """
    from api.main import app
    from security import TokenData, get_current_principal

    _reset_container()
    app.dependency_overrides[get_current_principal] = lambda: TokenData(subject="test-operator")
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
    _reset_container()


@pytest.fixture
def unauthenticated_client():
    """FastAPI test client that goes through real bearer verification."""
    from api.main import app

    _reset_container()
    app.dependency_overrides.clear()
    with TestClient(app) as client:
        yield client
    _reset_container()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    from security import create_access_token

    return {"Authorization": f"Bearer {create_access_token('test-operator')}"}
