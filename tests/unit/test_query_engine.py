"""Unit tests for paging, search and filter resolution."""

import pytest

from config.settings import CorpusSettings
from core.enums import ExampleCategory
from core.exceptions import ValidationError
from knowledge.query import (
    PageRequest,
    ilike_pattern,
    matches_search,
    normalize_search,
    paginate,
    resolve_category_filter,
    resolve_status_filter,
)


@pytest.fixture
def corpus():
    return CorpusSettings(default_page_size=10, max_page_size=50)


class TestPageRequest:
    def test_defaults_from_settings(self, corpus):
        request = PageRequest.create(corpus=corpus)
        assert (request.skip, request.limit) == (0, 10)

    def test_none_skip_means_start(self, corpus):
        assert PageRequest.create(None, 5, corpus=corpus).skip == 0

    @pytest.mark.parametrize("skip,limit,fields", [
        (-1, 10, {"skip"}),
        (0, 0, {"limit"}),
        (0, 51, {"limit"}),
        (-5, 0, {"skip", "limit"}),
    ])
    def test_invalid_window(self, corpus, skip, limit, fields):
        with pytest.raises(ValidationError) as exc_info:
            PageRequest.create(skip, limit, corpus=corpus)
        assert set(exc_info.value.field_errors) == fields


def test_pages_reconstruct_the_full_set(corpus):
    items = list(range(23))
    collected = []
    for skip in range(0, len(items), 5):
        page = paginate(items, PageRequest.create(skip, 5, corpus=corpus))
        assert page.total == 23
        assert page.pages == 5
        collected.extend(page.items)
    assert collected == items


def test_skip_past_end_gives_empty_page(corpus):
    page = paginate([1, 2, 3], PageRequest.create(10, 5, corpus=corpus))
    assert page.items == []
    assert page.total == 3


class TestSearch:
    def test_blank_search_is_no_filter(self):
        assert normalize_search("   ") is None
        assert matches_search(None, "anything")

    def test_case_insensitive_substring(self):
        assert matches_search("HELLO", "oh hello there")
        assert not matches_search("bye", "oh hello there", None)

    def test_any_text_may_match(self):
        assert matches_search("coffee", "fan message", "candidate about Coffee")

    def test_like_wildcards_escaped(self):
        assert ilike_pattern("50%_off\\") == "%50\\%\\_off\\\\%"


class TestFilters:
    @pytest.mark.parametrize("value", [None, "all", "ALL", " all "])
    def test_category_all_means_no_filter(self, value):
        assert resolve_category_filter(value) is None

    def test_category_resolved_to_enum(self):
        assert resolve_category_filter("flirty") is ExampleCategory.FLIRTY

    def test_unknown_category(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_category_filter("Spam")
        assert "category" in exc_info.value.field_errors

    @pytest.mark.parametrize("status,expected", [
        ("all", None),
        ("active", True),
        ("Inactive", False),
        (None, None),
    ])
    def test_status_filter(self, status, expected):
        assert resolve_status_filter(status) is expected

    def test_explicit_flag_wins_over_status(self):
        assert resolve_status_filter("active", is_active=False) is False

    def test_unknown_status(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_status_filter("archived")
        assert "status" in exc_info.value.field_errors
