"""
System Constants & Invariants
==============================
Immutable domain constants defining field boundaries, style profile
defaults and the CSV contracts shared with external tooling.

Architecture: Value Objects + Namespace Organization
"""

from dataclasses import dataclass, field
from typing import Final

# =============================================================================
# CREATOR FIELD LIMITS
# =============================================================================


@dataclass(frozen=True)
class CreatorLimits:
    """Length constraints applied to creator identity fields."""

    NAME_MIN_LENGTH: int = 1
    NAME_MAX_LENGTH: int = 100
    DESCRIPTION_MAX_LENGTH: int = 500
    AVATAR_URL_MAX_LENGTH: int = 1000


CREATOR_LIMITS: Final = CreatorLimits()


# =============================================================================
# RANKING SCALE
# =============================================================================


@dataclass(frozen=True)
class RankingScale:
    """Quality score attached to candidate responses."""

    MIN: int = 0
    MAX: int = 5
    DEFAULT: int = 3  # "Good"


RANKING_SCALE: Final = RankingScale()

RANKING_LABELS: Final[dict[int, str]] = {
    5: "Best",
    4: "Great",
    3: "Good",
    2: "Fair",
    1: "Poor",
    0: "Unrated",
}

UNRATED_LABEL: Final = "Unrated"


# =============================================================================
# STYLE PROFILE DEFAULTS
# =============================================================================


@dataclass(frozen=True)
class StyleProfileDefaults:
    """
    Single source of truth for a freshly materialized style profile.

    Message length values follow the style-configuration form, which is the
    only place that documents them as the auto-creation defaults.
    """

    CASE_STYLE: str = "sentence"
    SENTENCE_SEPARATORS: tuple[str, ...] = (".", "!", "?")
    MIN_LENGTH: int = 10
    MAX_LENGTH: int = 500
    OPTIMAL_LENGTH: int = 150
    USE_ELLIPSIS: bool = True
    USE_EXCLAMATIONS: bool = True
    MAX_CONSECUTIVE_EXCLAMATIONS: int = 2


STYLE_DEFAULTS: Final = StyleProfileDefaults()


# =============================================================================
# CSV CONTRACTS
# =============================================================================


@dataclass(frozen=True)
class CsvSchema:
    """Header layout of a CSV file exchanged with the outside world."""

    headers: tuple[str, ...]
    required: tuple[str, ...] = field(default=())

    @property
    def required_headers(self) -> tuple[str, ...]:
        return self.required or self.headers


STYLE_EXAMPLE_CSV: Final = CsvSchema(headers=("fan_message", "creator_response", "category"))

RESPONSE_EXAMPLE_CSV: Final = CsvSchema(
    headers=("fan_message", "category", "response_text", "ranking")
)

CREATOR_ROSTER_CSV: Final = CsvSchema(
    headers=(
        "ID",
        "Name",
        "Description",
        "Status",
        "Style Examples",
        "Response Examples",
        "Total Examples",
        "Has Config",
        "Created",
        "Updated",
    )
)

# Bucket used in category breakdowns for examples without a category
UNCATEGORIZED: Final = "Uncategorized"


# =============================================================================
# SEARCH INPUT TIMING
# =============================================================================


@dataclass(frozen=True)
class DebounceWindow:
    """Settle window for search and filter inputs, in milliseconds."""

    MIN_MS: int = 300
    MAX_MS: int = 500
    DEFAULT_MS: int = 400


DEBOUNCE_WINDOW: Final = DebounceWindow()


__all__ = [
    "CreatorLimits",
    "CREATOR_LIMITS",
    "RankingScale",
    "RANKING_SCALE",
    "RANKING_LABELS",
    "UNRATED_LABEL",
    "StyleProfileDefaults",
    "STYLE_DEFAULTS",
    "CsvSchema",
    "STYLE_EXAMPLE_CSV",
    "RESPONSE_EXAMPLE_CSV",
    "CREATOR_ROSTER_CSV",
    "UNCATEGORIZED",
    "DebounceWindow",
    "DEBOUNCE_WINDOW",
]
