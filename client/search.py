"""
Debounced search controller for example and creator listings.

Typing into the search box or switching category waits for the input to
settle before querying and jumps back to page 1. Page changes query at
once. Every issued query takes a fresh token; a response whose token is
no longer the latest is dropped, so results never go backwards.
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Generic, Optional, Set, TypeVar

from loguru import logger

from config.constants import DEBOUNCE_WINDOW
from config.settings import CorpusSettings
from core.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class SearchQuery:
    """Listing parameters at the moment a query is issued."""

    search: Optional[str] = None
    category: Optional[str] = None
    page: int = 1
    page_size: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size


Fetcher = Callable[[SearchQuery], Awaitable[T]]
ResultsCallback = Callable[[SearchQuery, T], None]


class SearchController(Generic[T]):
    """
    Last-request-wins listing state.

    Args:
        fetch: Coroutine running one listing query
        on_results: Called with the query and its result, latest only
        page_size: Items per page, defaults to the corpus page size
        debounce_ms: Settle window within 300-500 ms
        corpus: Corpus settings supplying the defaults
    """

    def __init__(
        self,
        fetch: Fetcher,
        *,
        on_results: Optional[ResultsCallback] = None,
        page_size: Optional[int] = None,
        debounce_ms: Optional[int] = None,
        corpus: Optional[CorpusSettings] = None,
    ):
        corpus = corpus or CorpusSettings()
        debounce_ms = corpus.search_debounce_ms if debounce_ms is None else debounce_ms
        if not DEBOUNCE_WINDOW.MIN_MS <= debounce_ms <= DEBOUNCE_WINDOW.MAX_MS:
            raise ValidationError.for_field(
                "debounce_ms",
                f"must be between {DEBOUNCE_WINDOW.MIN_MS} and {DEBOUNCE_WINDOW.MAX_MS}",
            )

        self.fetch = fetch
        self.on_results = on_results
        self.debounce_seconds = debounce_ms / 1000
        self.query = SearchQuery(page_size=page_size or corpus.default_page_size)
        self.results: Optional[T] = None
        self.last_applied: Optional[SearchQuery] = None

        self._token = 0
        self._debounce: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def token(self) -> int:
        """Token of the most recently issued query."""
        return self._token

    # =========================================================================
    # INPUTS
    # =========================================================================

    def set_search(self, text: Optional[str]) -> None:
        self.query = replace(self.query, search=text or None, page=1)
        self._schedule()

    def set_category(self, category: Optional[str]) -> None:
        self.query = replace(self.query, category=category or None, page=1)
        self._schedule()

    def set_page(self, page: int) -> None:
        """Move to ``page`` (1-based) without debouncing."""
        if page < 1:
            raise ValidationError.for_field("page", "must be at least 1")
        self._cancel_debounce()
        self.query = replace(self.query, page=page)
        self._issue()

    def refresh(self) -> None:
        self._cancel_debounce()
        self._issue()

    # =========================================================================
    # SCHEDULING
    # =========================================================================

    def _cancel_debounce(self) -> None:
        if self._debounce is not None and not self._debounce.done():
            self._debounce.cancel()
        self._debounce = None

    def _schedule(self) -> None:
        self._cancel_debounce()
        self._debounce = asyncio.get_running_loop().create_task(self._settle())

    async def _settle(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._debounce = None
        self._issue()

    def _issue(self) -> None:
        self._token += 1
        task = asyncio.get_running_loop().create_task(self._run(self._token, self.query))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run(self, token: int, query: SearchQuery) -> None:
        try:
            result = await self.fetch(query)
        except Exception as e:
            if token != self._token:
                logger.debug(f"Discarding stale listing failure (token {token}): {e}")
                return
            raise
        if token != self._token:
            logger.debug(f"Discarding stale listing result (token {token}, latest {self._token})")
            return
        self.results = result
        self.last_applied = query
        if self.on_results is not None:
            self.on_results(query, result)

    async def wait_idle(self) -> None:
        """Wait until no debounce is pending and every issued query has finished."""
        while self._debounce is not None or self._in_flight:
            pending = self._debounce
            if pending is not None:
                try:
                    await pending
                except asyncio.CancelledError:
                    if self._debounce is pending:
                        raise
                    # superseded by newer input
                    continue
            if self._in_flight:
                await asyncio.gather(*list(self._in_flight))

    async def aclose(self) -> None:
        """Drop pending input and cancel queries still in flight."""
        self._cancel_debounce()
        for task in list(self._in_flight):
            task.cancel()
        await asyncio.gather(*self._in_flight, return_exceptions=True)
        self._in_flight.clear()


__all__ = ["SearchQuery", "SearchController"]
