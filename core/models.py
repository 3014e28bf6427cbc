"""
Domain Data Models
==================
Complete Pydantic v2 schema definitions with:
- Type-safe validation and coercion
- Ordered, deduplicated sets for style vocabularies
- One default constructor for style profiles
- Derived statistics and import reporting

Architecture: Domain-Driven Design + Value Objects
"""

import math
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from config.constants import CREATOR_LIMITS, RANKING_LABELS, RANKING_SCALE, STYLE_DEFAULTS, UNRATED_LABEL
from core.enums import CaseStyle, ExampleCategory, ExampleKind
from core.exceptions import PartialBatchFailure, ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# CONFIGURATION
# =============================================================================


class BaseModelConfig(BaseModel):
    """Base configuration for all models."""

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on field updates
        use_enum_values=False,  # Keep enum types (don't convert to strings)
        from_attributes=True,
    )


def _require_text(value: Any, field: str) -> Any:
    if value is None:
        raise ValueError(f"{field} is required")
    if isinstance(value, str) and not value.strip():
        raise ValueError(f"{field} cannot be empty")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _parse_category(value: Any) -> Optional[ExampleCategory]:
    return ExampleCategory.parse(value)


def _dedupe(values: list[str], field: str) -> list[str]:
    seen: dict[str, None] = {}
    for item in values:
        if not item.strip():
            raise ValueError(f"{field} cannot contain blank entries")
        seen.setdefault(item, None)
    return list(seen)


def _check_mapping(values: dict[str, str], field: str) -> dict[str, str]:
    for key, value in values.items():
        if not key.strip():
            raise ValueError(f"{field} cannot contain blank keys")
        if not value.strip():
            raise ValueError(f"{field} value for '{key}' cannot be empty")
    return values


# =============================================================================
# CREATOR MODELS
# =============================================================================


class Creator(BaseModelConfig):
    """
    Persona whose messaging style is being captured.

    The avatar is an opaque reference owned by an external blob store.
    """

    id: int
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class CreatorCreate(BaseModelConfig):
    """Creator registration payload."""

    name: str = Field(
        ...,
        min_length=CREATOR_LIMITS.NAME_MIN_LENGTH,
        max_length=CREATOR_LIMITS.NAME_MAX_LENGTH,
    )
    description: Optional[str] = Field(default=None, max_length=CREATOR_LIMITS.DESCRIPTION_MAX_LENGTH)
    is_active: bool = True
    avatar_url: Optional[str] = Field(default=None, max_length=CREATOR_LIMITS.AVATAR_URL_MAX_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", "avatar_url", mode="before")
    @classmethod
    def normalize_optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)


class CreatorUpdate(BaseModelConfig):
    """Partial creator update; only explicitly provided fields are applied."""

    name: Optional[str] = Field(
        default=None,
        min_length=CREATOR_LIMITS.NAME_MIN_LENGTH,
        max_length=CREATOR_LIMITS.NAME_MAX_LENGTH,
    )
    description: Optional[str] = Field(default=None, max_length=CREATOR_LIMITS.DESCRIPTION_MAX_LENGTH)
    is_active: Optional[bool] = None
    avatar_url: Optional[str] = Field(default=None, max_length=CREATOR_LIMITS.AVATAR_URL_MAX_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("name cannot be null")
        return v.strip() if isinstance(v, str) else v

    @field_validator("is_active", mode="before")
    @classmethod
    def reject_null_status(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("is_active cannot be null")
        return v

    @field_validator("description", "avatar_url", mode="before")
    @classmethod
    def normalize_optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


# =============================================================================
# STYLE PROFILE MODELS
# =============================================================================


class MessageLengthPreferences(BaseModelConfig):
    """Preferred reply length window, in characters."""

    min_length: int = Field(default=STYLE_DEFAULTS.MIN_LENGTH, ge=0)
    max_length: int = Field(default=STYLE_DEFAULTS.MAX_LENGTH, ge=0)
    optimal_length: int = Field(default=STYLE_DEFAULTS.OPTIMAL_LENGTH, ge=0)

    @model_validator(mode="after")
    def check_ordering(self) -> "MessageLengthPreferences":
        if not self.min_length <= self.optimal_length <= self.max_length:
            raise ValueError(
                "min_length <= optimal_length <= max_length must hold "
                f"(got {self.min_length}, {self.optimal_length}, {self.max_length})"
            )
        return self


class PunctuationRules(BaseModelConfig):
    """Punctuation habits of the creator."""

    use_ellipsis: bool = STYLE_DEFAULTS.USE_ELLIPSIS
    use_exclamations: bool = STYLE_DEFAULTS.USE_EXCLAMATIONS
    max_consecutive_exclamations: int = Field(
        default=STYLE_DEFAULTS.MAX_CONSECUTIVE_EXCLAMATIONS, ge=0
    )


class StyleProfile(BaseModelConfig):
    """
    Structured style configuration for one creator.

    Set-like fields keep first-occurrence order and drop duplicates;
    map-like fields have unique keys by construction.
    """

    case_style: CaseStyle = CaseStyle(STYLE_DEFAULTS.CASE_STYLE)
    approved_emojis: list[str] = Field(default_factory=list)
    sentence_separators: list[str] = Field(
        default_factory=lambda: list(STYLE_DEFAULTS.SENTENCE_SEPARATORS)
    )
    text_replacements: dict[str, str] = Field(default_factory=dict)
    common_abbreviations: dict[str, str] = Field(default_factory=dict)
    message_length_preferences: MessageLengthPreferences = Field(
        default_factory=MessageLengthPreferences
    )
    punctuation_rules: PunctuationRules = Field(default_factory=PunctuationRules)
    style_instructions: Optional[str] = None
    tone_range: list[str] = Field(default_factory=list)

    @field_validator("approved_emojis", "sentence_separators", "tone_range")
    @classmethod
    def dedupe_sets(cls, v: list[str], info) -> list[str]:
        return _dedupe(v, info.field_name)

    @field_validator("text_replacements", "common_abbreviations")
    @classmethod
    def check_maps(cls, v: dict[str, str], info) -> dict[str, str]:
        return _check_mapping(v, info.field_name)

    @field_validator("style_instructions", mode="before")
    @classmethod
    def normalize_instructions(cls, v: Any) -> Any:
        return _blank_to_none(v)


def default_style_profile() -> StyleProfile:
    """The profile every creator starts with."""
    return StyleProfile(
        case_style=CaseStyle(STYLE_DEFAULTS.CASE_STYLE),
        approved_emojis=[],
        sentence_separators=list(STYLE_DEFAULTS.SENTENCE_SEPARATORS),
        text_replacements={},
        common_abbreviations={},
        message_length_preferences=MessageLengthPreferences(
            min_length=STYLE_DEFAULTS.MIN_LENGTH,
            max_length=STYLE_DEFAULTS.MAX_LENGTH,
            optimal_length=STYLE_DEFAULTS.OPTIMAL_LENGTH,
        ),
        punctuation_rules=PunctuationRules(
            use_ellipsis=STYLE_DEFAULTS.USE_ELLIPSIS,
            use_exclamations=STYLE_DEFAULTS.USE_EXCLAMATIONS,
            max_consecutive_exclamations=STYLE_DEFAULTS.MAX_CONSECUTIVE_EXCLAMATIONS,
        ),
        style_instructions=None,
        tone_range=[],
    )


class CreatorStyle(StyleProfile):
    """Persisted style profile bound to its creator."""

    id: int
    creator_id: int
    created_at: datetime
    updated_at: datetime

    def profile(self) -> StyleProfile:
        """Detach the configuration from its storage identity."""
        return StyleProfile.model_validate(
            self.model_dump(exclude={"id", "creator_id", "created_at", "updated_at"})
        )


# =============================================================================
# STYLE EXAMPLE MODELS
# =============================================================================


class StyleExample(BaseModelConfig):
    """Fan message paired with the creator's actual reply."""

    id: int
    creator_id: int
    fan_message: str
    creator_response: str
    category: Optional[ExampleCategory] = None
    created_at: datetime
    updated_at: datetime


class StyleExampleCreate(BaseModelConfig):
    fan_message: str
    creator_response: str
    category: Optional[ExampleCategory] = None

    @field_validator("fan_message", "creator_response", mode="before")
    @classmethod
    def require_text(cls, v: Any, info) -> Any:
        return _require_text(v, info.field_name)

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: Any) -> Optional[ExampleCategory]:
        return _parse_category(v)


class StyleExampleUpdate(BaseModelConfig):
    """Partial update; an explicit null category clears it."""

    fan_message: Optional[str] = None
    creator_response: Optional[str] = None
    category: Optional[ExampleCategory] = None

    @field_validator("fan_message", "creator_response", mode="before")
    @classmethod
    def require_text(cls, v: Any, info) -> Any:
        return _require_text(v, info.field_name)

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: Any) -> Optional[ExampleCategory]:
        return _parse_category(v)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# =============================================================================
# RESPONSE EXAMPLE MODELS
# =============================================================================


def ranking_label(ranking: Optional[int]) -> str:
    """Human label for a ranking value; null reads as unrated."""
    if ranking is None:
        return UNRATED_LABEL
    return RANKING_LABELS.get(ranking, UNRATED_LABEL)


class CandidateResponse(BaseModelConfig):
    """One candidate reply to a fan message, with its quality ranking."""

    id: Optional[int] = None
    response_text: str
    ranking: Optional[int] = Field(default=None, ge=RANKING_SCALE.MIN, le=RANKING_SCALE.MAX)
    position: int = Field(default=0, ge=0)

    @computed_field
    @property
    def label(self) -> str:
        return ranking_label(self.ranking)


class CandidateResponseCreate(BaseModelConfig):
    """
    Candidate as submitted by a caller.

    Omitting ``ranking`` means the default "Good" score; an explicit null
    stores the candidate unrated.
    """

    response_text: str
    ranking: Optional[int] = Field(
        default=RANKING_SCALE.DEFAULT, ge=RANKING_SCALE.MIN, le=RANKING_SCALE.MAX
    )

    @field_validator("response_text", mode="before")
    @classmethod
    def require_text(cls, v: Any) -> Any:
        return _require_text(v, "response_text")


class ResponseExample(BaseModelConfig):
    """Fan message with several ranked candidate replies."""

    id: int
    creator_id: int
    fan_message: str
    category: Optional[ExampleCategory] = None
    responses: list[CandidateResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def ranked_responses(self) -> list[CandidateResponse]:
        """Display order: best ranking first, unrated last, ties by insertion."""
        return sorted(
            self.responses,
            key=lambda r: (r.ranking is None, -(r.ranking or 0), r.position),
        )


class ResponseExampleCreate(BaseModelConfig):
    fan_message: str
    category: Optional[ExampleCategory] = None
    responses: list[CandidateResponseCreate] = Field(..., min_length=1)

    @field_validator("fan_message", mode="before")
    @classmethod
    def require_text(cls, v: Any) -> Any:
        return _require_text(v, "fan_message")

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: Any) -> Optional[ExampleCategory]:
        return _parse_category(v)


class ResponseExampleUpdate(BaseModelConfig):
    """Partial update; ``responses`` replaces the whole candidate list."""

    fan_message: Optional[str] = None
    category: Optional[ExampleCategory] = None
    responses: Optional[list[CandidateResponseCreate]] = Field(default=None, min_length=1)

    @field_validator("fan_message", mode="before")
    @classmethod
    def require_text(cls, v: Any) -> Any:
        return _require_text(v, "fan_message")

    @field_validator("responses", mode="before")
    @classmethod
    def reject_null_responses(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("responses cannot be null")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: Any) -> Optional[ExampleCategory]:
        return _parse_category(v)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"responses"})


# =============================================================================
# LISTING & STATISTICS MODELS
# =============================================================================


class Page(BaseModel, Generic[T]):
    """One page of a filtered, ordered listing."""

    items: list[T]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    size: int = Field(..., ge=1)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, items: list[T], total: int, skip: int, limit: int) -> "Page[T]":
        return cls(
            items=items,
            total=total,
            page=skip // limit + 1,
            size=limit,
            pages=math.ceil(total / limit) if total else 0,
        )


class RecentExample(BaseModelConfig):
    """Compact view of a recently added example of either kind."""

    id: int
    kind: ExampleKind
    fan_message: str
    category: Optional[ExampleCategory] = None
    created_at: datetime


class CreatorStatsSnapshot(BaseModelConfig):
    """Derived, never persisted summary of one creator's corpora."""

    creator_id: int
    creator_name: str
    creator_active: bool = True
    creator_description: Optional[str] = None
    style_examples_count: int = 0
    response_examples_count: int = 0
    total_individual_responses: int = 0
    total_examples: int = 0
    style_examples_by_category: dict[str, int] = Field(default_factory=dict)
    response_examples_by_category: dict[str, int] = Field(default_factory=dict)
    has_style_config: bool = False
    recent_examples: list[RecentExample] = Field(default_factory=list)
    stats_generated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def empty(cls, creator: Optional[Creator], creator_id: int) -> "CreatorStatsSnapshot":
        """Zeroed snapshot, labelled from the creator record when known."""
        if creator is None:
            return cls(creator_id=creator_id, creator_name=f"Creator {creator_id}")
        return cls(
            creator_id=creator.id,
            creator_name=creator.name,
            creator_active=creator.is_active,
            creator_description=creator.description,
        )


# =============================================================================
# BULK IMPORT MODELS
# =============================================================================


class ImportRowFailure(BaseModelConfig):
    row: int = Field(..., ge=1, description="1-based data row index, header excluded")
    reason: str


class ImportReport(BaseModelConfig):
    """Outcome of one CSV import."""

    kind: ExampleKind
    total_rows: int = 0
    imported_rows: int = 0
    created_examples: int = 0
    failures: list[ImportRowFailure] = Field(default_factory=list)

    @computed_field
    @property
    def failed_rows(self) -> int:
        return len(self.failures)

    def add_failure(self, row: int, reason: str) -> None:
        self.failures.append(ImportRowFailure(row=row, reason=reason))

    def raise_for_failures(self) -> "ImportReport":
        """Raise PartialBatchFailure when any row was rejected."""
        if self.failures:
            raise PartialBatchFailure(self)
        return self


# =============================================================================
# VALIDATION HELPERS
# =============================================================================


_REQUEST_LOCATIONS = {"body", "query", "path", "header"}


def field_errors_from(errors: list[dict[str, Any]]) -> dict[str, str]:
    """
    Collapse pydantic error entries into one message per field.

    Locations are dotted; request-location prefixes and list indexes
    beyond the first path segment are preserved as written.
    """
    field_errors: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        field_errors.setdefault(field, message)
    return field_errors


def coerce_model(model_cls: type[M], data: Any) -> M:
    """
    Validate ``data`` into ``model_cls``.

    Raises:
        ValidationError: Listing every violated field
    """
    if isinstance(data, model_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        field_errors = field_errors_from(exc.errors())
        raise ValidationError(
            f"Invalid {model_cls.__name__}: {', '.join(sorted(field_errors))}",
            field_errors=field_errors,
            cause=exc,
        ) from exc


__all__ = [
    "utcnow",
    "BaseModelConfig",
    "Creator",
    "CreatorCreate",
    "CreatorUpdate",
    "MessageLengthPreferences",
    "PunctuationRules",
    "StyleProfile",
    "CreatorStyle",
    "default_style_profile",
    "StyleExample",
    "StyleExampleCreate",
    "StyleExampleUpdate",
    "ranking_label",
    "CandidateResponse",
    "CandidateResponseCreate",
    "ResponseExample",
    "ResponseExampleCreate",
    "ResponseExampleUpdate",
    "Page",
    "RecentExample",
    "CreatorStatsSnapshot",
    "ImportRowFailure",
    "ImportReport",
    "field_errors_from",
    "coerce_model",
]
