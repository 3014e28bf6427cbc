"""
System Routes: Health Check and Monitoring Endpoints

Liveness and Prometheus scrape endpoints. Both stay outside bearer
authentication so orchestrators and scrapers can reach them.

Architectural Pattern: System API + Health Check Pattern
"""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from api.schemas import HealthCheckResponse
from config.settings import get_settings
from container import get_database, get_metrics
from core.exceptions import UnavailableError
from infrastructure.database import DatabaseManager
from infrastructure.monitoring import MetricsCollector, get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["System"])


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health check endpoint",
    description="System health check with dependency status",
)
async def health_check(
    db: DatabaseManager = Depends(get_database),
    metrics: MetricsCollector = Depends(get_metrics),
) -> HealthCheckResponse:
    """
    Report database connectivity.

    A failing database downgrades the status to ``degraded`` instead of
    failing the health check itself.
    """
    dependencies: Dict[str, str] = {}

    try:
        await db.health_check()
        dependencies["database"] = "healthy"
    except UnavailableError as e:
        logger.warning("health_check_database_unhealthy", error=e.message)
        dependencies["database"] = f"unhealthy: {e.message}"

    degradations = metrics.get_metrics_summary()["stats_degradations"]
    dependencies["stats"] = "healthy" if not degradations else f"degraded: {int(degradations)}"

    overall_status = (
        "healthy" if dependencies["database"] == "healthy" else "degraded"
    )

    return HealthCheckResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc),
        version=get_settings().app_version,
        dependencies=dependencies,
    )


@router.get(
    "/metrics",
    summary="System metrics (Prometheus format)",
    description="Export metrics in Prometheus format for monitoring systems",
)
async def get_system_metrics(
    metrics: MetricsCollector = Depends(get_metrics),
) -> Response:
    """Corpus mutation, import and statistics counters."""
    return Response(content=metrics.export_metrics(), media_type=metrics.get_content_type())
