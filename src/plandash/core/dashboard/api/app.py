"""
FastAPI application setup for the planning dashboard.

``create_app(context)`` builds an app bound to one DashboardContext. The
context is stored on ``app.state`` and closed when the app shuts down;
request handlers never close it.
"""

import logging
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from plandash import __version__
from plandash.core.dashboard.api.routes import outputs, projects, sync, tasks
from plandash.core.dashboard.context import DashboardContext
from plandash.core.dashboard.exceptions import (
    InvalidPayloadError,
    StoreError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

HTTP_422_UNPROCESSABLE = 422


class ErrorCode(str, Enum):
    """Machine-readable codes carried in every error body."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Server errors (5xx)
    DATABASE_ERROR = "DATABASE_ERROR"
    SYNC_ERROR = "SYNC_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Body returned for every 4xx and 5xx response."""

    error_code: ErrorCode
    message: str
    detail: str | None = None
    request_id: str | None = None


def error_response(
    request: Request,
    status_code: int,
    error_code: ErrorCode,
    message: str,
    detail: str | None = None,
) -> JSONResponse:
    """Build a JSON error response in the standard shape."""
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        detail=detail if detail is not None else message,
        request_id=str(id(request)),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _error_code_for_status(status_code: int) -> ErrorCode:
    if status_code == status.HTTP_404_NOT_FOUND:
        return ErrorCode.NOT_FOUND
    if status_code == status.HTTP_400_BAD_REQUEST:
        return ErrorCode.INVALID_REQUEST
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return ErrorCode.UNAUTHORIZED
    if status_code == HTTP_422_UNPROCESSABLE:
        return ErrorCode.VALIDATION_ERROR
    return ErrorCode.SYNC_ERROR if status_code >= 500 else ErrorCode.INVALID_REQUEST


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert HTTPException to the standard error response format."""
    detail_msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    if exc.status_code >= 500:
        logger.error(
            "HTTP %d on %s %s: %s", exc.status_code, request.method, request.url.path, detail_msg
        )
    else:
        logger.info(
            "HTTP %d on %s %s: %s", exc.status_code, request.method, request.url.path, detail_msg
        )

    return error_response(
        request, exc.status_code, _error_code_for_status(exc.status_code), detail_msg
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle validation errors from query parameters and request bodies."""
    logger.warning(
        "Validation error on %s %s: %s", request.method, request.url.path, exc.errors()
    )

    first_error = exc.errors()[0] if exc.errors() else {}
    field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
    error_msg = first_error.get("msg", "Invalid input")

    return error_response(
        request,
        HTTP_422_UNPROCESSABLE,
        ErrorCode.VALIDATION_ERROR,
        "Request validation failed",
        f"{field}: {error_msg}" if field else error_msg,
    )


async def invalid_payload_handler(request: Request, exc: InvalidPayloadError) -> JSONResponse:
    logger.info("Rejected payload on %s %s: %s", request.method, request.url.path, exc)
    return error_response(request, status.HTTP_400_BAD_REQUEST, ErrorCode.INVALID_REQUEST, str(exc))


async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    logger.warning("Unauthorized request on %s %s", request.method, request.url.path)
    return error_response(
        request, status.HTTP_401_UNAUTHORIZED, ErrorCode.UNAUTHORIZED, "Unauthorized"
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.DATABASE_ERROR,
        "Database operation failed",
        str(exc),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the traceback, return a generic 500."""
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url.path,
        str(exc),
        traceback.format_exc(),
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        "An internal server error occurred",
        str(exc),
    )


def create_app(context: DashboardContext, *, close_on_shutdown: bool = True) -> FastAPI:
    """
    Create the dashboard API bound to a context.

    Args:
        context: Scanner, backend and orchestrator to serve
        close_on_shutdown: Close the context when the app shuts down

    Returns:
        Configured FastAPI application

    Example:
        >>> context = DashboardContext.from_config(load_config())
        >>> app = create_app(context)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"Dashboard API started with {context.backend.name} backend")
        yield
        if close_on_shutdown:
            context.close()
            logger.info("Dashboard API stopped")

    app = FastAPI(
        title="Planning Dashboard API",
        description="REST API serving projects, tasks and outputs from the planning directory",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=context.config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(projects.router, prefix="/api", tags=["projects"])
    app.include_router(tasks.router, prefix="/api", tags=["tasks"])
    app.include_router(outputs.router, prefix="/api", tags=["outputs"])
    app.include_router(sync.router, prefix="/api", tags=["sync"])

    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidPayloadError, invalid_payload_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UnauthorizedError, unauthorized_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StoreError, store_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Identify the service."""
        return {"status": "ok", "message": "Planning Dashboard API"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    return app
