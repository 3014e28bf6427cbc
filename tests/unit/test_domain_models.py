"""
Unit tests for the domain models and validation helpers.

Covers normalisation of creator payloads, style profile invariants,
candidate ranking semantics and the error collapsing used by the API.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from core.enums import ExampleCategory
from core.exceptions import PartialBatchFailure, ValidationError
from core.models import (
    CandidateResponse,
    CandidateResponseCreate,
    CreatorCreate,
    CreatorStatsSnapshot,
    CreatorUpdate,
    ImportReport,
    MessageLengthPreferences,
    Page,
    ResponseExample,
    ResponseExampleUpdate,
    StyleExampleCreate,
    StyleProfile,
    coerce_model,
    default_style_profile,
    field_errors_from,
    utcnow,
)


class TestCreatorPayloads:
    def test_name_is_trimmed(self):
        assert CreatorCreate(name="  Alex  ").name == "Alex"

    def test_blank_name_rejected_with_field_error(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_model(CreatorCreate, {"name": "   "})
        assert set(exc_info.value.field_errors) == {"name"}

    def test_name_and_description_limits_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_model(CreatorCreate, {"name": "x" * 101, "description": "d" * 501})
        assert set(exc_info.value.field_errors) == {"name", "description"}

    def test_empty_description_becomes_null(self):
        assert CreatorCreate(name="Alex", description="").description is None

    def test_update_tracks_only_sent_fields(self):
        update = CreatorUpdate(description="")
        assert update.changes() == {"description": None}

    def test_update_rejects_null_name(self):
        with pytest.raises(PydanticValidationError):
            CreatorUpdate(name=None)


class TestStyleProfile:
    def test_defaults(self):
        profile = default_style_profile()
        assert profile.case_style.value == "sentence"
        assert profile.sentence_separators == [".", "!", "?"]
        prefs = profile.message_length_preferences
        assert (prefs.min_length, prefs.max_length, prefs.optimal_length) == (10, 500, 150)
        assert profile.punctuation_rules.max_consecutive_exclamations == 2
        assert profile.approved_emojis == []
        assert profile.style_instructions is None

    def test_default_constructor_matches_field_defaults(self):
        assert StyleProfile() == default_style_profile()

    def test_length_ordering_enforced(self):
        with pytest.raises(PydanticValidationError):
            MessageLengthPreferences(min_length=100, max_length=50, optimal_length=75)

    def test_set_fields_are_deduplicated_in_order(self):
        profile = StyleProfile(approved_emojis=["🔥", "💕", "🔥"])
        assert profile.approved_emojis == ["🔥", "💕"]

    def test_blank_set_entry_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_model(StyleProfile, {"approved_emojis": ["🔥", " "]})
        assert "approved_emojis" in exc_info.value.field_errors

    def test_blank_mapping_value_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_model(StyleProfile, {"text_replacements": {"u": ""}})
        assert "text_replacements" in exc_info.value.field_errors

    def test_nested_length_error_is_reported_under_its_path(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_model(
                StyleProfile,
                {"message_length_preferences": {"min_length": 50, "max_length": 10, "optimal_length": 20}},
            )
        assert list(exc_info.value.field_errors) == ["message_length_preferences"]


class TestExamples:
    def test_category_parsing_is_case_insensitive(self):
        example = StyleExampleCreate(fan_message="hi", creator_response="hey", category="greeting")
        assert example.category is ExampleCategory.GREETING

    def test_blank_category_means_none(self):
        example = StyleExampleCreate(fan_message="hi", creator_response="hey", category="  ")
        assert example.category is None

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_model(
                StyleExampleCreate,
                {"fan_message": "hi", "creator_response": "hey", "category": "Spam"},
            )
        assert "category" in exc_info.value.field_errors

    def test_blank_texts_each_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_model(StyleExampleCreate, {"fan_message": "", "creator_response": " "})
        assert set(exc_info.value.field_errors) == {"fan_message", "creator_response"}

    def test_candidate_ranking_defaults_to_good(self):
        assert CandidateResponseCreate(response_text="ok").ranking == 3

    def test_explicit_null_ranking_is_unrated(self):
        candidate = CandidateResponse(response_text="ok", ranking=None)
        assert candidate.label == "Unrated"

    def test_ranking_outside_scale_rejected(self):
        with pytest.raises(PydanticValidationError):
            CandidateResponseCreate(response_text="ok", ranking=6)

    def test_ranked_responses_best_first_unrated_last(self):
        now = utcnow()
        example = ResponseExample(
            id=1,
            creator_id=1,
            fan_message="hi",
            responses=[
                CandidateResponse(response_text="a", ranking=3, position=0),
                CandidateResponse(response_text="b", ranking=None, position=1),
                CandidateResponse(response_text="c", ranking=5, position=2),
                CandidateResponse(response_text="d", ranking=3, position=3),
                CandidateResponse(response_text="e", ranking=0, position=4),
            ],
            created_at=now,
            updated_at=now,
        )
        assert [r.response_text for r in example.ranked_responses()] == ["c", "a", "d", "e", "b"]

    def test_response_update_rejects_null_candidates(self):
        with pytest.raises(PydanticValidationError):
            ResponseExampleUpdate(responses=None)

    def test_response_update_changes_exclude_candidates(self):
        update = ResponseExampleUpdate(
            fan_message="new", responses=[CandidateResponseCreate(response_text="x")]
        )
        assert update.changes() == {"fan_message": "new"}


class TestListingModels:
    def test_page_numbers(self):
        page = Page[int].build(items=[21, 22], total=22, skip=20, limit=10)
        assert (page.page, page.size, page.pages) == (3, 10, 3)

    def test_empty_page_has_zero_pages(self):
        assert Page[int].build(items=[], total=0, skip=0, limit=10).pages == 0

    def test_empty_snapshot_for_unknown_creator(self):
        snapshot = CreatorStatsSnapshot.empty(None, 42)
        assert snapshot.creator_name == "Creator 42"
        assert snapshot.total_examples == 0
        assert snapshot.has_style_config is False


class TestValidationHelpers:
    def test_field_errors_strip_request_location_and_prefix(self):
        errors = [
            {"loc": ("body", "name"), "msg": "Value error, name cannot be empty"},
            {"loc": ("query", "limit"), "msg": "Input should be a valid integer"},
            {"loc": ("body", "name"), "msg": "second message is dropped"},
        ]
        assert field_errors_from(errors) == {
            "name": "name cannot be empty",
            "limit": "Input should be a valid integer",
        }

    def test_import_report_raises_on_failures(self):
        report = ImportReport(kind="style", total_rows=2, imported_rows=1)
        report.add_failure(2, "fan_message: fan_message cannot be empty")
        assert report.failed_rows == 1
        with pytest.raises(PartialBatchFailure) as exc_info:
            report.raise_for_failures()
        assert exc_info.value.report is report

    def test_clean_import_report_passes(self):
        report = ImportReport(kind="response", total_rows=1, imported_rows=1)
        assert report.raise_for_failures() is report
