"""
Dependency Injection Container: Centralized Object Lifecycle Management

Manages the application's object graph with dependency-injector:
singletons for infrastructure, factories for repositories and services.

Architecture: Container Pattern + Dependency Injection + Singleton Registry
Dependency Graph (DAG):
Settings -> Infrastructure -> Knowledge (repositories) -> Services
"""

from dependency_injector import containers, providers

from config.settings import Settings, get_settings
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


class Container(containers.DeclarativeContainer):
    """
    Central dependency injection container.

    - Singleton providers for infrastructure components
    - Factory providers for repositories and services
    """

    # Configuration providers (singletons)
    config: providers.Singleton[Settings] = providers.Singleton(get_settings)

    # Infrastructure layer providers (singletons)
    database: providers.Singleton[DatabaseManager] = providers.Singleton(
        DatabaseManager,
        database_settings=config.provided.database,
    )

    metrics: providers.Singleton[MetricsCollector] = providers.Singleton(MetricsCollector)

    # Knowledge layer providers (factories)
    creator_repository: providers.Factory[CreatorRepository] = providers.Factory(
        CreatorRepository,
        database_manager=database,
    )

    style_profile_repository: providers.Factory[StyleProfileRepository] = providers.Factory(
        StyleProfileRepository,
        database_manager=database,
    )

    style_example_repository: providers.Factory[StyleExampleRepository] = providers.Factory(
        StyleExampleRepository,
        database_manager=database,
    )

    response_example_repository: providers.Factory[ResponseExampleRepository] = (
        providers.Factory(
            ResponseExampleRepository,
            database_manager=database,
        )
    )

    stats_repository: providers.Factory[StatsRepository] = providers.Factory(
        StatsRepository,
        database_manager=database,
    )

    # Service layer providers (factories)
    creator_service: providers.Factory[CreatorService] = providers.Factory(
        CreatorService,
        creator_repository=creator_repository,
        corpus_settings=config.provided.corpus,
    )

    style_profile_service: providers.Factory[StyleProfileService] = providers.Factory(
        StyleProfileService,
        style_profile_repository=style_profile_repository,
    )

    example_service: providers.Factory[ExampleService] = providers.Factory(
        ExampleService,
        creator_repository=creator_repository,
        style_example_repository=style_example_repository,
        response_example_repository=response_example_repository,
        metrics_collector=metrics,
        corpus_settings=config.provided.corpus,
    )

    stats_service: providers.Factory[StatsService] = providers.Factory(
        StatsService,
        stats_repository=stats_repository,
        metrics_collector=metrics,
        corpus_settings=config.provided.corpus,
    )

    bulk_service: providers.Factory[BulkService] = providers.Factory(
        BulkService,
        example_service=example_service,
        creator_service=creator_service,
        stats_service=stats_service,
        metrics_collector=metrics,
        corpus_settings=config.provided.corpus,
    )


# Global container instance
container = Container()


# Convenience functions for dependency injection
def get_database() -> DatabaseManager:
    """Get database manager instance."""
    return container.database()


def get_metrics() -> MetricsCollector:
    """Get metrics collector instance."""
    return container.metrics()


def get_creator_service_dependency() -> CreatorService:
    return container.creator_service()


def get_style_profile_service_dependency() -> StyleProfileService:
    return container.style_profile_service()


def get_example_service_dependency() -> ExampleService:
    return container.example_service()


def get_stats_service_dependency() -> StatsService:
    return container.stats_service()


def get_bulk_service_dependency() -> BulkService:
    return container.bulk_service()


__all__ = [
    "Container",
    "container",
    "get_database",
    "get_metrics",
    "get_creator_service_dependency",
    "get_style_profile_service_dependency",
    "get_example_service_dependency",
    "get_stats_service_dependency",
    "get_bulk_service_dependency",
]
