"""
Creator Routes: Registry CRUD, Roster Export and Statistics

Implements creator management operations:
- Searchable, status-filtered, paginated listing
- CRUD with partial updates and activation toggling
- Cascading delete
- Roster CSV export
- Per-creator and bulk statistics, stats JSON export

Design Pattern: Resource-Oriented Architecture
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from api.schemas import BulkStatsRequest, StatusUpdateRequest
from container import (
    get_bulk_service_dependency,
    get_creator_service_dependency,
    get_stats_service_dependency,
)
from core.exceptions import UnavailableError
from core.models import Creator, CreatorCreate, CreatorStatsSnapshot, CreatorUpdate, Page
from infrastructure.monitoring import get_logger
from security import get_current_principal
from services.bulk_service import BulkService
from services.creator_service import CreatorService
from services.stats_service import StatsService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/creators",
    tags=["Creators"],
    dependencies=[Depends(get_current_principal)],
)


# ============================================================================
# COLLECTION OPERATIONS
# ============================================================================


@router.get("", response_model=Page[Creator], summary="List creators")
async def list_creators(
    search: Optional[str] = Query(None, description="Substring of name or description"),
    status_filter: str = Query("all", alias="status", description="all, active or inactive"),
    is_active: Optional[bool] = Query(None, description="Explicit activity filter"),
    skip: int = Query(0),
    limit: Optional[int] = Query(None),
    creator_service: CreatorService = Depends(get_creator_service_dependency),
) -> Page[Creator]:
    return await creator_service.list_creators(
        search=search, status=status_filter, skip=skip, limit=limit, is_active=is_active
    )


@router.post(
    "",
    response_model=Creator,
    status_code=status.HTTP_201_CREATED,
    summary="Register a creator",
)
async def create_creator(
    payload: CreatorCreate,
    creator_service: CreatorService = Depends(get_creator_service_dependency),
) -> Creator:
    return await creator_service.create_creator(payload)


@router.get("/export", summary="Export creator roster as CSV")
async def export_creators(
    search: Optional[str] = Query(None),
    status_filter: str = Query("all", alias="status"),
    bulk_service: BulkService = Depends(get_bulk_service_dependency),
) -> Response:
    content = await bulk_service.export_creators(search=search, status=status_filter)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="creators.csv"'},
    )


@router.post(
    "/stats/bulk",
    response_model=Dict[int, CreatorStatsSnapshot],
    summary="Statistics for several creators",
)
async def bulk_stats(
    payload: BulkStatsRequest,
    creator_service: CreatorService = Depends(get_creator_service_dependency),
    stats_service: StatsService = Depends(get_stats_service_dependency),
) -> Dict[int, CreatorStatsSnapshot]:
    """Always answers with one snapshot per requested id; degraded results are zeroed."""
    try:
        known = await creator_service.get_many(payload.creator_ids)
    except UnavailableError as e:
        logger.warning("bulk_stats_creator_lookup_failed", error=e.message)
        known = {}
    return await stats_service.get_bulk_stats(payload.creator_ids, known)


# ============================================================================
# ITEM OPERATIONS
# ============================================================================


@router.get("/{creator_id}", response_model=Creator, summary="Get creator")
async def get_creator(
    creator_id: int,
    creator_service: CreatorService = Depends(get_creator_service_dependency),
) -> Creator:
    return await creator_service.get_creator(creator_id)


@router.patch("/{creator_id}", response_model=Creator, summary="Update creator fields")
async def update_creator(
    creator_id: int,
    payload: CreatorUpdate,
    creator_service: CreatorService = Depends(get_creator_service_dependency),
) -> Creator:
    return await creator_service.update_creator(creator_id, payload)


@router.put("/{creator_id}/status", response_model=Creator, summary="Activate or deactivate")
async def set_creator_status(
    creator_id: int,
    payload: StatusUpdateRequest,
    creator_service: CreatorService = Depends(get_creator_service_dependency),
) -> Creator:
    return await creator_service.set_active(creator_id, payload.is_active)


@router.delete(
    "/{creator_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete creator with profile and examples",
)
async def delete_creator(
    creator_id: int,
    creator_service: CreatorService = Depends(get_creator_service_dependency),
) -> Response:
    await creator_service.delete_creator(creator_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# STATISTICS
# ============================================================================


@router.get(
    "/{creator_id}/stats",
    response_model=CreatorStatsSnapshot,
    summary="Corpus statistics for one creator",
)
async def get_creator_stats(
    creator_id: int,
    stats_service: StatsService = Depends(get_stats_service_dependency),
) -> CreatorStatsSnapshot:
    return await stats_service.get_stats(creator_id)


@router.get("/{creator_id}/stats/export", summary="Download statistics as JSON")
async def export_creator_stats(
    creator_id: int,
    stats_service: StatsService = Depends(get_stats_service_dependency),
) -> Response:
    content = await stats_service.export_stats_json(creator_id)
    return Response(
        content=content,
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="creator-{creator_id}-stats.json"'
        },
    )
