"""
Main FastAPI application definitions, middleware, and request handlers.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api.exceptions import add_exception_handlers
from api.routes import creators, examples, style_profiles, system
from config.settings import get_settings
from container import container
from infrastructure.monitoring import configure_logging, get_logger
from security import SECURITY_HEADERS

settings = get_settings()

configure_logging(settings.monitoring.log_level, settings.monitoring.log_format)
logger = get_logger(__name__)

# ============================================================================
# MIDDLEWARE STACK (Cross-Cutting Concerns)
# ============================================================================


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for key, value in SECURITY_HEADERS.items():
            response.headers.setdefault(key, value)
        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID for correlation across logs and error bodies."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# ============================================================================
# FASTAPI APPLICATION INITIALIZATION
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup and dispose of it on shutdown."""
    if len(settings.security.secret_key.get_secret_value()) < 32:
        message = "SECRET_KEY must be at least 32 characters long"
        if settings.is_production:
            raise RuntimeError(message)
        logger.warning("weak_secret_key", detail=message)

    database_manager = container.database()
    await database_manager.initialize()
    logger.info(
        "application_startup_complete",
        environment=settings.environment,
        database=settings.database.database,
    )

    yield

    await database_manager.close()
    logger.info("application_shutdown_complete")


app = FastAPI(
    title=f"{settings.app_name} API",
    description="Creator registry, style profiles and example corpora",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

add_exception_handlers(app)

app.include_router(system.router)
app.include_router(creators.router)
app.include_router(style_profiles.router)
app.include_router(examples.router)


@app.get("/", include_in_schema=False)
async def root():
    """Redirect root to API documentation."""
    return RedirectResponse(url="/docs")


# Middleware stack (order matters: last added = first executed)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Accept", "Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestIDMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app", host="0.0.0.0", port=8000, reload=settings.debug, log_level="info"
    )
