"""
Creator Service: Business Logic Layer for the Creator Registry

Encapsulates creator operations including:
- Validated registration and partial updates
- Search/status filtered, paginated listings
- Activation toggling
- Cascading deletion of a creator and all of its content

Design Pattern: Service Layer with Repository Pattern
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from config.settings import CorpusSettings, get_settings
from core.exceptions import CreatorNotFoundError
from core.models import Creator, CreatorCreate, CreatorUpdate, Page, coerce_model
from knowledge.creator_repository import CreatorRepository
from knowledge.query import PageRequest, build_page, normalize_search, resolve_status_filter


class CreatorService:
    """
    Service layer for the creator registry.

    Every lookup of a missing creator raises ``CreatorNotFoundError``.
    """

    def __init__(
        self,
        creator_repository: CreatorRepository,
        corpus_settings: Optional[CorpusSettings] = None,
    ):
        """
        Initialize service with its repository.

        Args:
            creator_repository: Creator data access
            corpus_settings: Paging defaults and bounds
        """
        self.creator_repository = creator_repository
        self.corpus_settings = corpus_settings or get_settings().corpus
        logger.debug("CreatorService initialized")

    async def list_creators(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[str] = "all",
        skip: Optional[int] = 0,
        limit: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Page[Creator]:
        """
        List creators newest first.

        Args:
            search: Case-insensitive substring over name and description
            status: "all", "active" or "inactive"
            skip: Offset into the filtered set
            limit: Page size
            is_active: Explicit activity flag, overrides ``status``

        Raises:
            ValidationError: For a bad status or paging window
        """
        request = PageRequest.create(skip, limit, corpus=self.corpus_settings)
        active = resolve_status_filter(status, is_active)
        creators, total = await self.creator_repository.list(
            search=normalize_search(search),
            is_active=active,
            skip=request.skip,
            limit=request.limit,
        )
        return build_page(creators, total, request)

    async def list_all(
        self, *, search: Optional[str] = None, status: Optional[str] = "all"
    ) -> List[Creator]:
        """Every creator matching the filter; used by roster export."""
        return await self.creator_repository.list_all(
            search=normalize_search(search), is_active=resolve_status_filter(status)
        )

    async def get_creator(self, creator_id: int) -> Creator:
        creator = await self.creator_repository.get_by_id(creator_id)
        if creator is None:
            raise CreatorNotFoundError(creator_id)
        return creator

    async def get_many(self, creator_ids: Iterable[int]) -> Dict[int, Creator]:
        return await self.creator_repository.get_many(creator_ids)

    async def create_creator(
        self, data: Union[CreatorCreate, Dict[str, Any], None] = None, **fields: Any
    ) -> Creator:
        """
        Register a creator.

        Accepts a ``CreatorCreate``, a mapping, or keyword fields
        (name, description, is_active, avatar_url).

        Raises:
            ValidationError: Name outside 1-100 chars or description over 500
        """
        payload = coerce_model(CreatorCreate, data if data is not None else fields)
        return await self.creator_repository.create(payload)

    async def update_creator(
        self, creator_id: int, data: Union[CreatorUpdate, Dict[str, Any]]
    ) -> Creator:
        """
        Merge only the provided fields into the creator.

        Raises:
            ValidationError: For invalid field values
            CreatorNotFoundError: If the creator does not exist
        """
        payload = coerce_model(CreatorUpdate, data)
        changes = payload.changes()
        if not changes:
            return await self.get_creator(creator_id)

        updated = await self.creator_repository.update(creator_id, changes)
        if updated is None:
            raise CreatorNotFoundError(creator_id)
        return updated

    async def set_active(self, creator_id: int, is_active: bool) -> Creator:
        """Set the activity flag; setting the current value again is harmless."""
        creator = await self.get_creator(creator_id)
        if creator.is_active == is_active:
            return creator

        updated = await self.creator_repository.update(creator_id, {"is_active": is_active})
        if updated is None:
            raise CreatorNotFoundError(creator_id)
        logger.info(f"Creator {creator_id} {'activated' if is_active else 'deactivated'}")
        return updated

    async def delete_creator(self, creator_id: int) -> None:
        """
        Delete a creator, its style profile and every example.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        if not await self.creator_repository.delete(creator_id):
            raise CreatorNotFoundError(creator_id)


__all__ = ["CreatorService"]
