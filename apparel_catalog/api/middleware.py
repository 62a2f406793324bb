"""API middleware for the apparel catalog.

Provides:
- Request context (request id, owner id) for logs and responses
- The error envelope shared with the exception handlers
- A last-resort handler for unhandled errors
"""

import time
from typing import Any, Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from apparel_catalog.api.dependencies import OWNER_HEADER
from apparel_catalog.api.schemas import ErrorResponse

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


def error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an ErrorResponse envelope carrying the request id."""
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        details=details or {},
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request-scoped log context and echoes the request id.

    The request id is taken from X-Request-ID or generated. The owner id,
    when the caller sent one, is bound too so write logs can be traced
    back to a seller.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with correlation context.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response with request ID header.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        context = {"request_id": request_id}
        owner_id = (request.headers.get(OWNER_HEADER) or "").strip()
        if owner_id:
            context["owner_id"] = owner_id
        structlog.contextvars.bind_contextvars(**context)

        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            log = logger.warning if status_code >= 500 else logger.info
            log(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars(*context)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Converts anything that escaped the exception handlers into a 500."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )
            return error_response(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "INTERNAL_ERROR",
                "An internal error occurred",
            )


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).
    Ownership is asserted upstream through the X-Owner-Id header, so no
    authentication middleware runs here.

    Args:
        app: FastAPI application instance.
    """
    # Inside the request context so 500s carry the request id
    app.add_middleware(ErrorHandlerMiddleware)

    # Request context (outermost)
    app.add_middleware(RequestContextMiddleware)
