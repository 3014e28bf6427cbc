"""
API Exception Handlers: Domain Error → HTTP Error Mapping

Centralized exception handling for clean error responses.
Maps domain-specific exceptions to appropriate HTTP status codes; every
error body carries the same envelope.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import (
    CreatorStyleException,
    NotFoundError,
    PartialBatchFailure,
    Unauthenticated,
    UnavailableError,
    ValidationError,
)
from core.models import field_errors_from
from infrastructure.monitoring import get_logger

logger = get_logger(__name__)


def _error_body(
    request: Request,
    error: str,
    detail: Any,
    *,
    error_code: Optional[str] = None,
    fields: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": error,
        "detail": detail,
        "error_code": error_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": getattr(request.state, "request_id", None),
    }
    if fields is not None:
        body["fields"] = fields
    return body


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic request validation errors with the domain 422 shape."""
    fields = field_errors_from(list(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            "Validation Error",
            f"Invalid request: {', '.join(sorted(fields))}",
            error_code="VALIDATION_FAILED",
            fields=fields,
        ),
    )


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            "Validation Error",
            exc.message,
            error_code=exc.error_code,
            fields=exc.field_errors,
        ),
    )


async def not_found_handler(request: Request, exc: NotFoundError):
    """Handle missing creators and examples."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(request, "Not Found", exc.message, error_code=exc.error_code),
    )


async def unavailable_handler(request: Request, exc: UnavailableError):
    """Handle storage backend failures."""
    logger.error("backend_unavailable", error_id=str(exc.error_id), detail=exc.message)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(
            request, "Service Unavailable", exc.message, error_code=exc.error_code
        ),
    )


async def partial_batch_failure_handler(request: Request, exc: PartialBatchFailure):
    """Report a partially committed import as Multi-Status."""
    body = _error_body(request, "Partial Batch Failure", exc.message, error_code=exc.error_code)
    body["report"] = exc.report.model_dump(mode="json")
    return JSONResponse(status_code=status.HTTP_207_MULTI_STATUS, content=body)


async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=_error_body(request, "Unauthenticated", exc.message, error_code=exc.error_code),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def application_error_handler(request: Request, exc: CreatorStyleException):
    """Catch-all for application errors without a dedicated mapping."""
    log = logger.error if exc.severity.should_alert else logger.warning
    log("unhandled_application_error", **exc.to_dict())
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request, "Internal Server Error", exc.message, error_code=exc.error_code
        ),
    )


def add_exception_handlers(app: FastAPI):
    """Add all exception handlers to the FastAPI app."""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(UnavailableError, unavailable_handler)
    app.add_exception_handler(PartialBatchFailure, partial_batch_failure_handler)
    app.add_exception_handler(Unauthenticated, unauthenticated_handler)
    app.add_exception_handler(CreatorStyleException, application_error_handler)
