"""
API Schemas: Request/Response Models

Pydantic models for the HTTP contract. Request bodies reuse the domain
payload models from ``core.models``; this module adds the transport-only
shapes (status toggles, vocabulary edits, bulk stats requests, health and
error envelopes) and the display-ordered response example view.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.enums import ExampleCategory
from core.models import CandidateResponse, ImportReport, ResponseExample


class StatusUpdateRequest(BaseModel):
    """Command: Activate or deactivate a creator."""

    is_active: bool


class EmojiRequest(BaseModel):
    emoji: str


class SeparatorRequest(BaseModel):
    separator: str


class MappingEntryRequest(BaseModel):
    """Command: Add or overwrite one replacement/abbreviation entry."""

    key: str
    value: str

    model_config = ConfigDict(json_schema_extra={"example": {"key": "u", "value": "you"}})


class BulkStatsRequest(BaseModel):
    """Query: Statistics for several creators at once."""

    creator_ids: List[int] = Field(..., max_length=1000)


class ResponseExampleView(BaseModel):
    """Response example with candidates in display order (best first, unrated last)."""

    id: int
    creator_id: int
    fan_message: str
    category: Optional[ExampleCategory] = None
    responses: List[CandidateResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, example: ResponseExample) -> "ResponseExampleView":
        return cls(
            id=example.id,
            creator_id=example.creator_id,
            fan_message=example.fan_message,
            category=example.category,
            responses=example.ranked_responses(),
            created_at=example.created_at,
            updated_at=example.updated_at,
        )


class ResponseExamplePage(BaseModel):
    items: List[ResponseExampleView]
    total: int
    page: int
    size: int
    pages: int


class ImportResponse(BaseModel):
    """Result of a bulk CSV import."""

    message: str
    report: ImportReport


class HealthCheckResponse(BaseModel):
    """System health status."""

    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str
    detail: Any
    error_code: Optional[str] = None
    fields: Optional[Dict[str, str]] = None
    timestamp: datetime
    request_id: Optional[str] = None


__all__ = [
    "StatusUpdateRequest",
    "EmojiRequest",
    "SeparatorRequest",
    "MappingEntryRequest",
    "BulkStatsRequest",
    "ResponseExampleView",
    "ResponseExamplePage",
    "ImportResponse",
    "HealthCheckResponse",
    "ErrorResponse",
]
