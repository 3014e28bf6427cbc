"""
Query & Pagination Engine
=========================

Shared listing primitives for creator and example listings:
- Validated skip/limit page requests
- Page assembly from SQL counts or in-memory slices
- Case-insensitive substring search, in SQL and in memory
- Category and status filter resolution

Ordering is the caller's responsibility; every listing ends its ORDER BY
with the primary key so page boundaries are stable.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, TypeVar

from config.settings import CorpusSettings, get_settings
from core.enums import CreatorStatusFilter, ExampleCategory
from core.exceptions import ValidationError
from core.models import Page

T = TypeVar("T")

ALL_CATEGORIES = "all"
LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class PageRequest:
    """Offset window over an ordered result set."""

    skip: int
    limit: int

    @classmethod
    def create(
        cls,
        skip: Optional[int] = 0,
        limit: Optional[int] = None,
        *,
        corpus: Optional[CorpusSettings] = None,
    ) -> "PageRequest":
        """
        Build a request, applying configured defaults and bounds.

        Raises:
            ValidationError: If skip is negative or limit falls outside 1..max
        """
        corpus = corpus or get_settings().corpus
        skip = 0 if skip is None else skip
        limit = corpus.default_page_size if limit is None else limit
        max_limit = corpus.max_page_size

        errors: dict[str, str] = {}
        if skip < 0:
            errors["skip"] = "skip must be >= 0"
        if limit < 1 or limit > max_limit:
            errors["limit"] = f"limit must be between 1 and {max_limit}"
        if errors:
            raise ValidationError("Invalid pagination window", field_errors=errors)
        return cls(skip=skip, limit=limit)


def build_page(items: list[T], total: int, request: PageRequest) -> Page[T]:
    return Page.build(items=items, total=total, skip=request.skip, limit=request.limit)


def paginate(items: Sequence[T], request: PageRequest) -> Page[T]:
    """Slice an already filtered and ordered sequence."""
    window = list(items[request.skip : request.skip + request.limit])
    return build_page(window, len(items), request)


def normalize_search(term: Optional[str]) -> Optional[str]:
    if term is None:
        return None
    term = term.strip()
    return term or None


def matches_search(term: Optional[str], *texts: Optional[str]) -> bool:
    """True when any text contains the term, ignoring case. No term matches all."""
    term = normalize_search(term)
    if term is None:
        return True
    needle = term.casefold()
    return any(text is not None and needle in text.casefold() for text in texts)


def ilike_pattern(term: str) -> str:
    """Substring LIKE pattern with wildcard characters escaped."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def resolve_category_filter(value: Any) -> Optional[ExampleCategory]:
    """
    Map a category filter onto the enum.

    ``None``, empty and ``"all"`` mean no filtering.

    Raises:
        ValidationError: For an unknown category name
    """
    if value is None or isinstance(value, ExampleCategory):
        return value
    if str(value).strip().lower() == ALL_CATEGORIES:
        return None
    try:
        return ExampleCategory.parse(value)
    except ValueError as e:
        raise ValidationError(str(e), field_errors={"category": str(e)}) from e


def resolve_status_filter(
    status: Any = None, is_active: Optional[bool] = None
) -> Optional[bool]:
    """
    Resolve the creator activity filter to a column value.

    The explicit ``is_active`` flag, when given, wins over ``status``.

    Raises:
        ValidationError: For an unknown status name
    """
    if is_active is not None:
        return is_active
    if status is None or status == "":
        return None
    try:
        return CreatorStatusFilter(str(status).strip().lower()).is_active_value
    except ValueError as e:
        allowed = ", ".join(s.value for s in CreatorStatusFilter)
        message = f"Unknown status '{status}'. Allowed: {allowed}"
        raise ValidationError(message, field_errors={"status": message}) from e


__all__ = [
    "ALL_CATEGORIES",
    "LIKE_ESCAPE",
    "PageRequest",
    "build_page",
    "paginate",
    "normalize_search",
    "matches_search",
    "ilike_pattern",
    "resolve_category_filter",
    "resolve_status_filter",
]
