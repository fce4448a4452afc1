"""
FastAPI Application Setup

Main entry point for the Talk Proposals API application.

Responsibility:
    - FastAPI app initialization
    - Router registration (proposals, reviews, admin, tags)
    - CORS middleware configuration
    - Global exception handlers (domain errors -> HTTP status + envelope)
    - Per-user request budget on every /api route
    - Request logging middleware
    - Health check endpoint
    - Redis pools closed on shutdown (lifespan)

Architecture Notes:
    - Part of API Layer (Presentation)
    - Entry point for HTTP server (uvicorn)
    - Centralizes cross-cutting concerns (logging, CORS, error handling)
    - No business logic - pure HTTP orchestration

Error table:
    AuthenticationError                       -> 401
    AuthorizationError                        -> 403
    NotFoundError (and subclasses)            -> 404
    ValidationError, DomainValidationError    -> 422
    DuplicateReviewError                      -> 422
    RateLimitExceededError                    -> 429 (Retry-After, X-RateLimit-*)
    PersistenceError, TransientInfraError     -> 500
    Request body/query validation             -> 422
    Anything else                             -> 500
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from talk_proposals import __version__
from talk_proposals.api.dependencies import RateLimit, get_app_container
from talk_proposals.api.routers import admin, proposals, reviews, tags
from talk_proposals.api.schemas.common import ApiResponse, HealthCheckResponse
from talk_proposals.bootstrap import Container
from talk_proposals.domain.shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainException,
    DomainValidationError,
    DuplicateReviewError,
    NotFoundError,
    PersistenceError,
    RateLimitExceededError,
    TransientInfraError,
    ValidationError,
)
from talk_proposals.infrastructure.persistence.redis import close_connections

# Configure logger
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "An unexpected error occurred"

# First match wins, so subclasses must precede their bases
STATUS_CODES: tuple[tuple[type[DomainException], int], ...] = (
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DomainValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DuplicateReviewError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (RateLimitExceededError, status.HTTP_429_TOO_MANY_REQUESTS),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (TransientInfraError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_code_for(exc: DomainException) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def envelope(status_code: int, message: str, data=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(ApiResponse.error(message, data)),
        headers=headers,
    )


# ============================================================================
# MIDDLEWARE
# ============================================================================


async def request_logging_middleware(request: Request, call_next):
    """
    Request logging middleware.

    Logs all incoming requests with method, path, status code, and duration.

    Logging Format:
        INFO: "Incoming request: POST /api/proposals"
        INFO: "Request completed: POST /api/proposals - 201 - 0.123s"
    """
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} - "
        f"{response.status_code} - {duration:.3f}s"
    )
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def domain_exception_handler(request: Request, exc: DomainException):
    """
    Global exception handler for domain layer exceptions.

    Maps the exception class to an HTTP status code (see STATUS_CODES) and
    renders the error envelope. Server-side failures are logged with their
    traceback and answered with a generic message.
    """
    status_code = status_code_for(exc)

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            f"Server error: {exc.__class__.__name__} - {exc.message} - "
            f"Request: {request.method} {request.url.path}",
            exc_info=exc,
        )
        return envelope(status_code, SERVER_ERROR_MESSAGE)

    logger.warning(
        f"Domain exception: {exc.__class__.__name__} - {exc.message} - "
        f"Request: {request.method} {request.url.path}"
    )

    data = None
    if isinstance(exc, ValidationError) and exc.field_name:
        data = {"errors": {exc.field_name: [exc.message]}}
    headers = None
    if isinstance(exc, RateLimitExceededError):
        headers = {
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
        }
    return envelope(status_code, exc.message, data, headers)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed body/query parameters -> 422 with per-field messages."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))

    logger.warning(
        f"Request validation failed: {request.method} {request.url.path} - {errors}"
    )
    return envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "The given data was invalid.", {"errors": errors}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return envelope(exc.status_code, str(exc.detail))


async def generic_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unexpected exceptions.

    Catches all unhandled exceptions and converts to 500 Internal Server Error.
    Logs full stack trace for debugging.
    """
    logger.error(
        f"Unexpected error: {exc.__class__.__name__} - {str(exc)} - "
        f"Request: {request.method} {request.url.path}",
        exc_info=True,
    )
    return envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


# ============================================================================
# LIFESPAN
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_connections()
    logger.info("Talk Proposals API shut down")


# ============================================================================
# APP FACTORY
# ============================================================================


def create_app() -> FastAPI:
    """
    FastAPI application factory.

    Creates and configures FastAPI app with all middleware, routers,
    and exception handlers.

    Usage:
        >>> app = create_app()
        >>> # Run with uvicorn:
        >>> # uvicorn talk_proposals.api.main:app --reload
    """
    app = FastAPI(
        title="Talk Proposals API",
        version=__version__,
        description=(
            "Conference talk proposal management: speakers submit proposals, "
            "reviewers rate them, admins moderate status."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    for router in (proposals.router, reviews.router, admin.router, tags.router):
        app.include_router(router, prefix="/api", dependencies=[Depends(RateLimit.api())])

    @app.get(
        "/health",
        response_model=HealthCheckResponse,
        status_code=status.HTTP_200_OK,
        summary="Health check endpoint",
        tags=["health"],
    )
    def health_check(container: Container = Depends(get_app_container)) -> HealthCheckResponse:
        return HealthCheckResponse(
            status="ok",
            version=__version__,
            timestamp=time.time(),
            redis="ok" if container.cache.ping() else "unavailable",
        )

    logger.info("Talk Proposals API initialized")
    return app


app = create_app()
