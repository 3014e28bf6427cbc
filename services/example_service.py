"""
Example Service: Business Logic Layer for the Example Corpora

Manages the two per-creator corpora:
- Style examples (fan message + actual creator reply), paginated in SQL
- Response examples (fan message + ranked candidates), filtered and
  paginated in memory over the creator's full set

Every mutation re-checks the creator inside its own transaction, so a
mutation racing a creator deletion fails with ``CreatorNotFoundError``
instead of leaving orphans.

Design Pattern: Service Layer with Repository Pattern
"""

from typing import Any, Dict, List, Optional, Union

from loguru import logger

from config.settings import CorpusSettings, get_settings
from core.enums import ExampleKind
from core.exceptions import CreatorNotFoundError, ExampleNotFoundError
from core.models import (
    Page,
    ResponseExample,
    ResponseExampleCreate,
    ResponseExampleUpdate,
    StyleExample,
    StyleExampleCreate,
    StyleExampleUpdate,
    coerce_model,
)
from infrastructure.monitoring import MetricsCollector
from knowledge.creator_repository import CreatorRepository
from knowledge.query import (
    PageRequest,
    build_page,
    matches_search,
    normalize_search,
    paginate,
    resolve_category_filter,
)
from knowledge.response_example_repository import ResponseExampleRepository
from knowledge.style_example_repository import StyleExampleRepository


class ExampleService:
    """Service layer shared by both example kinds."""

    def __init__(
        self,
        creator_repository: CreatorRepository,
        style_example_repository: StyleExampleRepository,
        response_example_repository: ResponseExampleRepository,
        metrics_collector: Optional[MetricsCollector] = None,
        corpus_settings: Optional[CorpusSettings] = None,
    ):
        self.creator_repository = creator_repository
        self.style_example_repository = style_example_repository
        self.response_example_repository = response_example_repository
        self.metrics = metrics_collector
        self.corpus_settings = corpus_settings or get_settings().corpus
        logger.debug("ExampleService initialized")

    async def _require_creator(self, creator_id: int) -> None:
        if await self.creator_repository.get_by_id(creator_id) is None:
            raise CreatorNotFoundError(creator_id)

    def _record(self, kind: ExampleKind, operation: str) -> None:
        if self.metrics:
            self.metrics.record_example_mutation(kind.value, operation)

    # =========================================================================
    # STYLE EXAMPLES
    # =========================================================================

    async def list_style_examples(
        self,
        creator_id: int,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
        skip: Optional[int] = 0,
        limit: Optional[int] = None,
    ) -> Page[StyleExample]:
        """
        One page of style examples, filtered in SQL.

        Raises:
            ValidationError: Unknown category or bad paging window
            CreatorNotFoundError: If the creator does not exist
        """
        request = PageRequest.create(skip, limit, corpus=self.corpus_settings)
        category_filter = resolve_category_filter(category)
        await self._require_creator(creator_id)
        items, total = await self.style_example_repository.list(
            creator_id,
            search=normalize_search(search),
            category=category_filter,
            skip=request.skip,
            limit=request.limit,
        )
        return build_page(items, total, request)

    async def list_all_style_examples(
        self, creator_id: int, *, search: Optional[str] = None, category: Optional[str] = None
    ) -> List[StyleExample]:
        """The whole filtered view, every page of it."""
        category_filter = resolve_category_filter(category)
        await self._require_creator(creator_id)
        return await self.style_example_repository.list_all(
            creator_id, search=normalize_search(search), category=category_filter
        )

    async def get_style_example(self, creator_id: int, example_id: int) -> StyleExample:
        example = await self.style_example_repository.get(creator_id, example_id)
        if example is None:
            await self._require_creator(creator_id)
            raise ExampleNotFoundError(ExampleKind.STYLE.value, example_id, creator_id=creator_id)
        return example

    async def create_style_example(
        self, creator_id: int, data: Union[StyleExampleCreate, Dict[str, Any]]
    ) -> StyleExample:
        """
        Raises:
            ValidationError: Blank texts or unknown category
            CreatorNotFoundError: If the creator does not exist
        """
        payload = coerce_model(StyleExampleCreate, data)
        created = await self.style_example_repository.create(creator_id, payload)
        self._record(ExampleKind.STYLE, "create")
        return created

    async def update_style_example(
        self,
        creator_id: int,
        example_id: int,
        data: Union[StyleExampleUpdate, Dict[str, Any]],
    ) -> StyleExample:
        payload = coerce_model(StyleExampleUpdate, data)
        changes = payload.changes()
        if not changes:
            return await self.get_style_example(creator_id, example_id)

        updated = await self.style_example_repository.update(creator_id, example_id, changes)
        if updated is None:
            raise ExampleNotFoundError(ExampleKind.STYLE.value, example_id, creator_id=creator_id)
        self._record(ExampleKind.STYLE, "update")
        return updated

    async def delete_style_example(self, creator_id: int, example_id: int) -> None:
        if not await self.style_example_repository.delete(creator_id, example_id):
            raise ExampleNotFoundError(ExampleKind.STYLE.value, example_id, creator_id=creator_id)
        self._record(ExampleKind.STYLE, "delete")
        logger.info(f"Deleted style example {example_id} of creator {creator_id}")

    # =========================================================================
    # RESPONSE EXAMPLES
    # =========================================================================

    async def list_all_response_examples(
        self, creator_id: int, *, search: Optional[str] = None, category: Optional[str] = None
    ) -> List[ResponseExample]:
        """
        The creator's response examples matching the filter, newest first.

        Search matches the fan message or any candidate's text.
        """
        category_filter = resolve_category_filter(category)
        await self._require_creator(creator_id)
        examples = await self.response_example_repository.list_all(
            creator_id, category=category_filter
        )
        term = normalize_search(search)
        if term is None:
            return examples
        return [
            example
            for example in examples
            if matches_search(
                term, example.fan_message, *(r.response_text for r in example.responses)
            )
        ]

    async def list_response_examples(
        self,
        creator_id: int,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
        skip: Optional[int] = 0,
        limit: Optional[int] = None,
    ) -> Page[ResponseExample]:
        """
        One page of response examples.

        The full filtered set is loaded and sliced in memory.
        TODO: push search and the skip/limit window into SQL once corpora
        outgrow in-memory slicing.
        """
        request = PageRequest.create(skip, limit, corpus=self.corpus_settings)
        examples = await self.list_all_response_examples(
            creator_id, search=search, category=category
        )
        return paginate(examples, request)

    async def get_response_example(self, creator_id: int, example_id: int) -> ResponseExample:
        example = await self.response_example_repository.get(creator_id, example_id)
        if example is None:
            await self._require_creator(creator_id)
            raise ExampleNotFoundError(
                ExampleKind.RESPONSE.value, example_id, creator_id=creator_id
            )
        return example

    async def create_response_example(
        self, creator_id: int, data: Union[ResponseExampleCreate, Dict[str, Any]]
    ) -> ResponseExample:
        """
        Raises:
            ValidationError: Blank texts, no candidates, ranking outside 0-5
            CreatorNotFoundError: If the creator does not exist
        """
        payload = coerce_model(ResponseExampleCreate, data)
        created = await self.response_example_repository.create(creator_id, payload)
        self._record(ExampleKind.RESPONSE, "create")
        return created

    async def update_response_example(
        self,
        creator_id: int,
        example_id: int,
        data: Union[ResponseExampleUpdate, Dict[str, Any]],
    ) -> ResponseExample:
        """Partial update; sending ``responses`` replaces the candidate list."""
        payload = coerce_model(ResponseExampleUpdate, data)
        changes = payload.changes()
        responses = payload.responses if "responses" in payload.model_fields_set else None
        if not changes and responses is None:
            return await self.get_response_example(creator_id, example_id)

        updated = await self.response_example_repository.update(
            creator_id, example_id, changes, responses
        )
        if updated is None:
            raise ExampleNotFoundError(
                ExampleKind.RESPONSE.value, example_id, creator_id=creator_id
            )
        self._record(ExampleKind.RESPONSE, "update")
        return updated

    async def delete_response_example(self, creator_id: int, example_id: int) -> None:
        if not await self.response_example_repository.delete(creator_id, example_id):
            raise ExampleNotFoundError(
                ExampleKind.RESPONSE.value, example_id, creator_id=creator_id
            )
        self._record(ExampleKind.RESPONSE, "delete")
        logger.info(f"Deleted response example {example_id} of creator {creator_id}")


__all__ = ["ExampleService"]
