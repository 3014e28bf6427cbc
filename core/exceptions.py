"""
Exception Hierarchy & Error Handling Framework
===============================================
Type-safe exception taxonomy with structured context propagation for the
creator style engine. Every service-level failure is one of these types;
the HTTP layer maps them onto status codes.

Architecture: Railway-Oriented Programming + Error Algebra
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID, uuid4

from core.enums import ErrorSeverity

if TYPE_CHECKING:
    from core.models import ImportReport

# =============================================================================
# BASE EXCEPTION CLASSES
# =============================================================================


class CreatorStyleException(Exception):
    """
    Root exception for all application errors.

    Implements structured error context with:
    - Unique error ID for tracing
    - Severity classification for alerting
    - Structured context dictionary
    - Retry metadata
    - Timestamp for temporal analysis
    """

    def __init__(
        self,
        message: str,
        *,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[dict[str, Any]] = None,
        error_code: Optional[str] = None,
        retryable: bool = False,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.error_id: UUID = uuid4()
        self.message: str = message
        self.severity: ErrorSeverity = severity
        self.context: dict[str, Any] = context or {}
        self.error_code: Optional[str] = error_code
        self.retryable: bool = retryable
        self.timestamp: datetime = datetime.now(timezone.utc)

        if cause:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/telemetry."""
        return {
            "error_id": str(self.error_id),
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.name,
            "error_code": self.error_code,
            "retryable": self.retryable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.__cause__) if self.__cause__ else None,
        }

    def __str__(self) -> str:
        """Human-readable error representation."""
        parts = [f"[{self.severity.name}] {self.message}"]
        if self.error_code:
            parts.append(f"Code: {self.error_code}")
        if self.context:
            parts.append(f"Context: {self.context}")
        return " | ".join(parts)


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================


class ValidationError(CreatorStyleException):
    """
    Input violated one or more field constraints.

    ``field_errors`` maps each violated field to one message, so a caller
    sees every problem in a single round trip.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field_errors: Optional[dict[str, str]] = None,
        **kwargs,
    ):
        self.field_errors: dict[str, str] = dict(field_errors or {})
        super().__init__(
            message,
            severity=ErrorSeverity.WARNING,
            retryable=False,
            context={"fields": sorted(self.field_errors)},
            error_code="VALIDATION_FAILED",
            **kwargs,
        )

    @classmethod
    def for_field(cls, field: str, reason: str) -> "ValidationError":
        return cls(f"Invalid value for '{field}': {reason}", field_errors={field: reason})


# =============================================================================
# NOT FOUND EXCEPTIONS
# =============================================================================


class NotFoundError(CreatorStyleException):
    """Requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: Any, message: Optional[str] = None, **kwargs):
        message = message or f"{entity_type} with ID {entity_id} not found"
        context = {"entity_type": entity_type, "entity_id": str(entity_id)}
        context.update(kwargs.pop("context", None) or {})
        super().__init__(
            message,
            severity=ErrorSeverity.WARNING,
            retryable=False,
            context=context,
            error_code=kwargs.pop("error_code", "ENTITY_NOT_FOUND"),
            **kwargs,
        )
        self.entity_id = entity_id


class CreatorNotFoundError(NotFoundError):
    """Creator does not exist."""

    def __init__(self, creator_id: int, message: Optional[str] = None, **kwargs):
        super().__init__(
            "Creator",
            creator_id,
            message or f"Creator {creator_id} not found",
            error_code="CREATOR_NOT_FOUND",
            **kwargs,
        )
        self.creator_id = creator_id


class ExampleNotFoundError(NotFoundError):
    """Example does not exist or belongs to another creator."""

    def __init__(
        self,
        kind: str,
        example_id: int,
        *,
        creator_id: Optional[int] = None,
        message: Optional[str] = None,
        **kwargs,
    ):
        entity = "Style example" if kind == "style" else "Response example"
        super().__init__(
            entity,
            example_id,
            message or f"{entity} {example_id} not found for creator {creator_id}",
            error_code="EXAMPLE_NOT_FOUND",
            context={"creator_id": creator_id, "kind": kind},
            **kwargs,
        )
        self.kind = kind
        self.creator_id = creator_id


# =============================================================================
# INFRASTRUCTURE EXCEPTIONS
# =============================================================================


class UnavailableError(CreatorStyleException):
    """Backing store unreachable or failed while serving a request."""

    def __init__(
        self,
        message: str = "Storage backend unavailable",
        *,
        operation: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.ERROR,
            retryable=True,
            context={"operation": operation},
            error_code=kwargs.pop("error_code", "BACKEND_UNAVAILABLE"),
            **kwargs,
        )


class DatabaseConnectionError(UnavailableError):
    """Failed to establish database connection."""

    def __init__(
        self,
        message: str = "Database connection failed",
        *,
        host: Optional[str] = None,
        database: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            operation="connect",
            error_code="DB_CONNECTION_FAILED",
            **kwargs,
        )
        self.context.update({"host": host, "database": database})


# =============================================================================
# BATCH EXCEPTIONS
# =============================================================================


class PartialBatchFailure(CreatorStyleException):
    """Bulk import committed some rows and rejected others."""

    def __init__(self, report: "ImportReport", message: Optional[str] = None, **kwargs):
        message = message or (
            f"{report.failed_rows} of {report.total_rows} rows failed to import"
        )
        super().__init__(
            message,
            severity=ErrorSeverity.WARNING,
            retryable=False,
            context={
                "kind": report.kind.value,
                "failed_rows": report.failed_rows,
                "total_rows": report.total_rows,
            },
            error_code="PARTIAL_BATCH_FAILURE",
            **kwargs,
        )
        self.report = report


# =============================================================================
# AUTHENTICATION EXCEPTIONS
# =============================================================================


class Unauthenticated(CreatorStyleException):
    """Missing, expired or otherwise invalid bearer credential."""

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.WARNING,
            retryable=False,
            error_code="UNAUTHENTICATED",
            **kwargs,
        )


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "CreatorStyleException",
    "ValidationError",
    "NotFoundError",
    "CreatorNotFoundError",
    "ExampleNotFoundError",
    "UnavailableError",
    "DatabaseConnectionError",
    "PartialBatchFailure",
    "Unauthenticated",
]
