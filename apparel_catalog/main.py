"""Apparel catalog API entry point.

Catalog collaborators that outlive a request (Redis client, listing
cache, audit publisher, reference resolver) are built in the lifespan
and hung on app.state. Domain errors are mapped to the error envelope
here; anything else falls through to ErrorHandlerMiddleware.

Run with: uvicorn apparel_catalog.main:app
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from apparel_catalog.api.designs import router as designs_router
from apparel_catalog.api.health import router as health_router
from apparel_catalog.api.middleware import error_response, setup_middleware
from apparel_catalog.api.references import router as references_router
from apparel_catalog.catalog.cache import ListingCache
from apparel_catalog.catalog.references import ReferenceResolver
from apparel_catalog.domain.exceptions import (
    ConflictError,
    DomainError,
    NotFoundOrUnauthorizedError,
    PartialWriteError,
    ValidationError,
)
from apparel_catalog.infrastructure.audit import AuditPublisher
from apparel_catalog.infrastructure.config import settings
from apparel_catalog.infrastructure.database import async_session_factory
from apparel_catalog.infrastructure.logging import configure_logging
from apparel_catalog.infrastructure.redis import close_redis_client, get_redis_client

logger = structlog.get_logger()

# Domain error -> HTTP status
ERROR_STATUS: dict[type[DomainError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundOrUnauthorizedError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    PartialWriteError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    # Startup
    configure_logging()
    logger.info(
        "Starting apparel catalog API",
        version=settings.api_version,
        debug=settings.debug,
    )

    client = get_redis_client()
    app.state.cache = ListingCache(client)
    app.state.audit = AuditPublisher(client)
    app.state.references = ReferenceResolver(async_session_factory)
    logger.info("Catalog collaborators ready", cache_enabled=app.state.cache.enabled)

    yield

    # Shutdown
    logger.info("Shutting down apparel catalog API", pending_audit=app.state.audit.pending)
    await app.state.audit.drain()
    await close_redis_client()


app = FastAPI(
    title="Apparel Catalog API",
    description="Designs with per-size variants, cached listings and size reconciliation",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request context and 500 fallback
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(designs_router)
app.include_router(references_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Map domain errors to typed responses."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.warning(
            "Domain error",
            error_code=exc.error_code,
            path=request.url.path,
            details=exc.details,
        )
    return error_response(request, status_code, exc.error_code, exc.message, exc.details)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Wrap HTTPExceptions (e.g. missing owner header) in the error envelope."""
    if isinstance(exc.detail, dict):
        return error_response(
            request,
            exc.status_code,
            exc.detail.get("error_code", "ERROR"),
            exc.detail.get("message", ""),
            exc.detail.get("details"),
        )
    return error_response(request, exc.status_code, "ERROR", str(exc.detail))
