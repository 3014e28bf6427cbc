"""
Domain Enumerations & Type Taxonomy
====================================
Closed vocabularies shared by validation, filtering, persistence and the
CSV contracts.

Architecture: Type-Driven Design + ADT (Algebraic Data Types)
"""

from enum import Enum, IntEnum
from typing import Optional


class ExampleCategory(str, Enum):
    """
    Fan message categorization taxonomy.

    One closed enumeration used everywhere a category appears: request
    validation, list filters, CSV import and statistics breakdowns.
    """

    GREETING = "Greeting"
    QUESTION = "Question"
    COMPLIMENT = "Compliment"
    REQUEST = "Request"
    PROBLEM = "Problem"
    FEEDBACK = "Feedback"
    FLIRTY = "Flirty"
    CASUAL = "Casual"
    FORMAL = "Formal"
    OTHER = "Other"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["ExampleCategory"]:
        """
        Case-insensitive lookup onto the canonical member.

        Blank input means "no category" and yields None.

        Raises:
            ValueError: If the value names no known category
        """
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        text = str(raw).strip()
        if not text:
            return None
        lowered = text.lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown category '{text}'. Allowed: {allowed}")


class CaseStyle(str, Enum):
    """Letter-casing convention a creator writes in."""

    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    SENTENCE = "sentence"
    TITLE = "title"
    CUSTOM = "custom"


class CreatorStatusFilter(str, Enum):
    """Activity filter for creator listings."""

    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"

    @property
    def is_active_value(self) -> Optional[bool]:
        """Column value to match, or None for no filtering."""
        return {
            CreatorStatusFilter.ALL: None,
            CreatorStatusFilter.ACTIVE: True,
            CreatorStatusFilter.INACTIVE: False,
        }[self]


class ExampleKind(str, Enum):
    """The two example corpora kept per creator."""

    STYLE = "style"
    RESPONSE = "response"

    @property
    def label(self) -> str:
        return "style example" if self is ExampleKind.STYLE else "response example"


class ErrorSeverity(IntEnum):
    """
    Error classification by impact severity.

    Determines alerting and logging level.
    """

    CRITICAL = 5  # System failure, immediate intervention required
    ERROR = 4  # Operation failed
    WARNING = 3  # Caller error or degraded result
    INFO = 2  # Notable event, no action required
    DEBUG = 1  # Diagnostic information

    @property
    def should_alert(self) -> bool:
        """Determine if severity warrants immediate alert."""
        return self >= self.ERROR


__all__ = [
    "ExampleCategory",
    "CaseStyle",
    "CreatorStatusFilter",
    "ExampleKind",
    "ErrorSeverity",
]
