"""
Global Error Handlers for the Salary Ledger service
"""

import logging
import traceback
from typing import Any, Dict, Tuple
from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    DataError,
    OperationalError,
)
from psycopg2.errors import (
    DeadlockDetected,
    ForeignKeyViolation,
    LockNotAvailable,
    NumericValueOutOfRange,
)

from salary_ledger.core.exceptions import BaseAPIException
from salary_ledger.core.config import settings

logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    detail: str,
    error_code: str = None,
    error_data: Dict[str, Any] = None,
    request_id: str = None,
    headers: Dict[str, str] = None
) -> JSONResponse:
    """Create standardized error response."""

    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if error_code:
        content["error_code"] = error_code

    if error_data:
        content["error_data"] = error_data

    if request_id:
        content["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers=headers
    )


async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Handle custom API exceptions."""

    request_id = getattr(request.state, 'request_id', None)

    logger.warning(
        f"API Exception: {exc.error_code or 'UNKNOWN'} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "error_code": exc.error_code,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=exc.status_code,
        detail=exc.detail,
        error_code=exc.error_code,
        error_data=exc.error_data,
        request_id=request_id,
        headers=exc.headers
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle FastAPI and Starlette HTTP exceptions."""

    request_id = getattr(request.state, 'request_id', None)

    logger.warning(
        f"HTTP Exception: {exc.status_code} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=exc.status_code,
        detail=exc.detail,
        error_code="HTTP_EXCEPTION",
        request_id=request_id,
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""

    request_id = getattr(request.state, 'request_id', None)

    validation_errors = []
    for error in exc.errors():
        validation_errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"Validation Error: {len(validation_errors)} validation error(s)",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="Request validation failed",
        error_code="VALIDATION_ERROR",
        error_data={"validation_errors": validation_errors},
        request_id=request_id
    )


def classify_database_error(exc: SQLAlchemyError) -> Tuple[int, str, str]:
    """Map a database error raised on a ledger path to (status, error code, detail)."""
    original = getattr(exc, "orig", None)

    if isinstance(exc, OperationalError):
        if isinstance(original, (LockNotAvailable, DeadlockDetected)):
            return status.HTTP_409_CONFLICT, "LOCK_CONFLICT", "Ledger is busy, please retry"
        return status.HTTP_503_SERVICE_UNAVAILABLE, "DATABASE_UNAVAILABLE", "Database is unavailable"

    if isinstance(exc, IntegrityError) and isinstance(original, ForeignKeyViolation):
        return status.HTTP_400_BAD_REQUEST, "INVALID_REFERENCE", "Referenced user does not exist"

    if isinstance(exc, DataError) and isinstance(original, NumericValueOutOfRange):
        return status.HTTP_400_BAD_REQUEST, "AMOUNT_OUT_OF_RANGE", "Amount exceeds the ledger column precision"

    if isinstance(exc, (IntegrityError, DataError)):
        return status.HTTP_400_BAD_REQUEST, "INVALID_LEDGER_DATA", "Ledger data rejected by the database"

    return status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", "Database error occurred"


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy database exceptions."""

    request_id = getattr(request.state, 'request_id', None)
    status_code, error_code, detail = classify_database_error(exc)

    logger.error(
        f"Database Error: {error_code} - {detail}",
        extra={
            "exception_type": type(exc).__name__,
            "error_details": str(exc),
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    error_data = {}
    if settings.debug:
        error_data = {
            "exception_type": type(exc).__name__,
            "original_error": str(exc)
        }

    return create_error_response(
        status_code=status_code,
        detail=detail,
        error_code=error_code,
        error_data=error_data,
        request_id=request_id
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""

    request_id = getattr(request.state, 'request_id', None)

    logger.error(
        f"Unhandled Exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    if settings.debug:
        detail = f"Internal server error: {str(exc)}"
        error_data = {
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc().split('\n')
        }
    else:
        detail = "An unexpected error occurred. Please try again later."
        error_data = None

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
        error_code="INTERNAL_SERVER_ERROR",
        error_data=error_data,
        request_id=request_id
    )


# Error handler mapping
ERROR_HANDLERS = {
    BaseAPIException: base_api_exception_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    SQLAlchemyError: sqlalchemy_exception_handler,
    Exception: generic_exception_handler,
}


def register_error_handlers(app):
    """Register all error handlers with the FastAPI app."""

    for exception_class, handler in ERROR_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)

    logger.info("Error handlers registered successfully")
