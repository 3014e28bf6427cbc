"""
Unit tests for the debounced, last-request-wins search controller.
"""

import asyncio

import pytest

from client.search import SearchController, SearchQuery
from core.exceptions import ValidationError


class RecordingFetcher:
    """Fetch stand-in that records queries and can delay per page."""

    def __init__(self, delays=None):
        self.queries = []
        self.delays = delays or {}

    async def __call__(self, query: SearchQuery):
        self.queries.append(query)
        await asyncio.sleep(self.delays.get(query.page, 0))
        return f"page {query.page} for {query.search!r}"


@pytest.mark.asyncio
async def test_burst_of_keystrokes_issues_one_query():
    fetch = RecordingFetcher()
    controller = SearchController(fetch, debounce_ms=300)

    for text in ["h", "he", "hel", "hell", "hello"]:
        controller.set_search(text)
        await asyncio.sleep(0.04)
    await controller.wait_idle()

    assert [q.search for q in fetch.queries] == ["hello"]
    assert controller.results == "page 1 for 'hello'"
    assert controller.token == 1


@pytest.mark.asyncio
async def test_stale_response_is_discarded():
    fetch = RecordingFetcher(delays={2: 0.2, 3: 0.01})
    applied = []
    controller = SearchController(fetch, on_results=lambda q, r: applied.append(r))

    controller.set_page(2)
    controller.set_page(3)
    await controller.wait_idle()

    assert [q.page for q in fetch.queries] == [2, 3]
    assert applied == ["page 3 for None"]
    assert controller.last_applied.page == 3


@pytest.mark.asyncio
async def test_superseded_failure_is_discarded():
    async def fetch(query: SearchQuery):
        if query.page == 2:
            await asyncio.sleep(0.05)
            raise RuntimeError("page 2 failed")
        await asyncio.sleep(0.2)
        return f"page {query.page}"

    applied = []
    controller = SearchController(fetch, on_results=lambda q, r: applied.append(r))

    controller.set_page(2)
    controller.set_page(3)
    await controller.wait_idle()

    assert applied == ["page 3"]


@pytest.mark.asyncio
async def test_latest_failure_propagates():
    async def fetch(query: SearchQuery):
        raise RuntimeError("backend down")

    controller = SearchController(fetch)
    controller.set_page(2)
    with pytest.raises(RuntimeError):
        await controller.wait_idle()


@pytest.mark.asyncio
async def test_filter_change_resets_page():
    fetch = RecordingFetcher()
    controller = SearchController(fetch, page_size=20)

    controller.set_page(4)
    await controller.wait_idle()
    controller.set_category("Question")
    await controller.wait_idle()

    last = fetch.queries[-1]
    assert (last.category, last.page, last.skip) == ("Question", 1, 0)
    assert fetch.queries[0].skip == 60


@pytest.mark.asyncio
async def test_page_change_cancels_pending_search():
    fetch = RecordingFetcher()
    controller = SearchController(fetch)

    controller.set_search("gym")
    controller.set_page(2)
    await controller.wait_idle()

    assert len(fetch.queries) == 1
    assert (fetch.queries[0].search, fetch.queries[0].page) == ("gym", 2)


@pytest.mark.asyncio
async def test_aclose_drops_pending_input():
    fetch = RecordingFetcher()
    controller = SearchController(fetch)
    controller.set_search("late")
    await controller.aclose()
    await asyncio.sleep(0.5)
    assert fetch.queries == []


@pytest.mark.parametrize("debounce_ms", [100, 299, 501])
def test_debounce_window_enforced(debounce_ms):
    with pytest.raises(ValidationError) as exc_info:
        SearchController(RecordingFetcher(), debounce_ms=debounce_ms)
    assert "debounce_ms" in exc_info.value.field_errors


def test_page_must_be_positive():
    controller = SearchController(RecordingFetcher())
    with pytest.raises(ValidationError):
        controller.set_page(0)
