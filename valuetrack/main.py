# valuetrack/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application and its middleware stack
- Maps service-layer exceptions to HTTP responses
- Registers all routers
- Defines the health endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from valuetrack.config import settings
from valuetrack.database import check_database_health, get_db
from valuetrack.dependencies import get_recalculation_worker
from valuetrack.middleware import (
    RATE_LIMIT_HEALTH,
    CorrelationIdMiddleware,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from valuetrack.routers import (
    accounts_router,
    charts_router,
    performance_router,
    snapshots_router,
    validation_router,
)
from valuetrack.schemas.errors import ErrorDetail, ValidationErrorDetail
from valuetrack.services.exceptions import (
    InputValidationError,
    NotFoundError,
    OrphanUpdateError,
    PersistenceError,
    ServiceError,
    ValidationError,
)
from valuetrack.utils import get_correlation_id, setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# APPLICATION SETUP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.app_name} starting ({settings.environment})")
    yield
    worker = get_recalculation_worker()
    if worker.is_running:
        worker.stop()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    description="Personal finance tracker: account values, snapshots and performance",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================

def _error_response(status_code: int, error: str, message: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(
            error=error,
            message=message,
            details=details,
            correlation_id=get_correlation_id(),
        ).model_dump(),
    )


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(InputValidationError)
async def input_validation_handler(request: Request, exc: InputValidationError) -> JSONResponse:
    """Rejected monetary value or account name (400)."""
    logger.warning(f"Input rejected ({exc.kind.value}): {exc}")
    return _error_response(
        400,
        "InputValidationError",
        str(exc),
        {"field": exc.field, "kind": exc.kind.value},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Other rule violations: bad dates, closed accounts (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(
        400,
        type(exc).__name__,
        str(exc),
        {"field": exc.field} if exc.field else None,
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.warning(f"Not found: {exc}")
    return _error_response(
        404,
        type(exc).__name__,
        str(exc),
        {"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


@app.exception_handler(OrphanUpdateError)
async def orphan_update_handler(request: Request, exc: OrphanUpdateError) -> JSONResponse:
    """Update whose account is gone (409)."""
    logger.error(f"Orphan update: {exc}")
    return _error_response(
        409,
        "OrphanUpdateError",
        str(exc),
        {"update_id": exc.update_id, "account_id": exc.account_id},
    )


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """The write did not happen; the client may retry (503)."""
    logger.error(f"Persistence error during {exc.operation}: {exc}")
    return _error_response(
        503,
        "PersistenceError",
        str(exc),
        {"operation": exc.operation} if exc.operation else None,
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error: {exc}")
    return _error_response(503, "DatabaseError", "Database unavailable")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error(f"Service error: {exc}")
    return _error_response(500, "ServiceError", str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Convert {"detail": ...} responses (including unknown routes) to ErrorDetail."""
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        409: "ConflictError",
        429: "RateLimitError",
        503: "ServiceUnavailableError",
    }
    response = _error_response(
        exc.status_code,
        error_types.get(exc.status_code, "HTTPError"),
        str(exc.detail) if exc.detail else "An error occurred",
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            details=errors,
            correlation_id=get_correlation_id(),
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _error_response(500, "InternalServerError", "An unexpected error occurred")


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(accounts_router)  # /accounts/*
app.include_router(validation_router)  # /validation/*
app.include_router(charts_router)  # /charts/*
app.include_router(performance_router)  # /performance/*
app.include_router(snapshots_router)  # /snapshots/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health of the database and the recalculation worker.

    Returns 503 when the database is unreachable. The worker only starts
    once a rebuild is queued, so an idle worker is not a failure.
    """
    database = check_database_health()
    worker = get_recalculation_worker()
    response_data = {
        "status": database["status"],
        "checks": {
            "database": database,
            "recalculation_worker": {"running": worker.is_running},
        },
    }
    if database["status"] != "healthy":
        return JSONResponse(status_code=503, content=response_data)
    return response_data


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Ready when a query against the session's database succeeds."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
