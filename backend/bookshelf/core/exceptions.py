"""
Bookshelf Exceptions and HTTP Error Mapping

Domain exception taxonomy shared by the filter engine, validators, store
and cache layers, plus the FastAPI handlers that turn them into
``{"error": ...}`` responses.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .correlation import get_correlation_id

logger = structlog.get_logger()


class BookshelfException(Exception):
    """Base exception for all application errors.

    Carries a human-readable message, a machine-readable code and the HTTP
    status the API layer should answer with.
    """

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BookshelfException):
    """Malformed or missing input: body fields, filter values, path ids."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(BookshelfException):
    """Well-formed identity with no matching record or edge."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        details = {"resource": resource}
        if identifier is not None:
            details["id"] = str(identifier)
        super().__init__(message=message, details=details)


class InternalError(BookshelfException):
    """Store or cache unavailable, or a consistency step failed."""

    status_code = 500
    default_code = "INTERNAL_ERROR"


class StoreUnavailableException(InternalError):
    """Raised when the persistent store fails or does not answer in time."""

    def __init__(
        self,
        operation: str,
        original_error: Optional[Exception] = None,
        timeout_seconds: Optional[float] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        if original_error is not None:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Store operation '{operation}' failed",
            error_code="STORE_UNAVAILABLE",
            details=details,
        )
        if original_error is not None:
            self.__cause__ = original_error


def _format_validation_error(exc: RequestValidationError) -> str:
    """Render the first pydantic error as ``field: message``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = [
        str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")
    ]
    message = first.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


async def bookshelf_exception_handler(
    request: Request, exc: BookshelfException
) -> JSONResponse:
    correlation_id = get_correlation_id()

    if exc.status_code >= 500:
        logger.error(
            "Request failed with internal error",
            path=request.url.path,
            method=request.method,
            error_code=exc.error_code,
            error=exc.message,
            details=exc.details,
            exc_info=exc,
        )
        content = {"error": "Internal server error", "code": exc.error_code}
        if correlation_id:
            content["correlation_id"] = correlation_id
        return JSONResponse(status_code=exc.status_code, content=content)

    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error_code=exc.error_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = _format_validation_error(exc)
    logger.info(
        "Request validation failed",
        path=request.url.path,
        method=request.method,
        error=message,
    )
    return JSONResponse(status_code=400, content={"error": message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for anything that escaped the taxonomy."""
    correlation_id = get_correlation_id()

    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        correlation_id=correlation_id,
        exc_info=exc,
    )

    content = {"error": "Internal server error"}
    if correlation_id:
        content["correlation_id"] = correlation_id
    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error mapping to an application."""
    app.add_exception_handler(BookshelfException, bookshelf_exception_handler)
    app.add_exception_handler(
        RequestValidationError, request_validation_exception_handler
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
