"""
Custom exception handlers for consistent API error responses.

Every error is rendered as ``{"status": "error", "code": ..., "message": ...}``.
Only the terminal scanner failures carry a user-facing message; everything
else is sanitized.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.core.exceptions import (
    MissingApiKeyError,
    ScannerError,
    TextExtractionError,
    UnsupportedImageError,
    VisionAnalysisError,
)
from src.core.logging import get_logger

logger = get_logger(__name__)

# Constants for sanitized error messages
VALIDATION_ERROR_MSG = "Invalid data provided"
INVALID_REQUEST_MSG = "Invalid request"
INTERNAL_ERROR_MSG = "Internal server error"

_SCANNER_STATUS: dict[type[ScannerError], int] = {
    TextExtractionError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnsupportedImageError: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    VisionAnalysisError: status.HTTP_502_BAD_GATEWAY,
    MissingApiKeyError: status.HTTP_400_BAD_REQUEST,
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "code": status_code,
            "message": message,
        },
    )


def _sanitize(message: str, fallback: str) -> str:
    lower = message.lower()
    if "validation error" in lower or "pydantic" in lower:
        return VALIDATION_ERROR_MSG
    return fallback


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTPException with standardized error response.
    """
    detail = str(exc.detail) if exc.detail else "An error occurred"

    logger.error(
        "http_exception",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        detail=exc.detail,
    )
    return _error_response(exc.status_code, _sanitize(detail, detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error(
        "validation_exception",
        path=request.url.path,
        method=request.method,
        errors=exc.errors(),
    )
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid request data")


async def pydantic_validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """
    Handle Pydantic model validation errors (internal validation, not request validation).
    """
    logger.error(
        "pydantic_validation_error",
        path=request.url.path,
        method=request.method,
        errors=str(exc),
        exc_info=True,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MSG)


async def scanner_exception_handler(request: Request, exc: ScannerError) -> JSONResponse:
    """
    Handle terminal pipeline failures.

    These messages are written for the end user and are returned as-is.
    """
    status_code = _SCANNER_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning(
        "scanner_exception",
        path=request.url.path,
        method=request.method,
        status_code=status_code,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return _error_response(status_code, str(exc))


async def value_error_exception_handler(request: Request, exc: ValueError) -> JSONResponse:
    error_message = str(exc)
    logger.error(
        "value_error_exception",
        path=request.url.path,
        method=request.method,
        error=error_message,  # Log full error internally
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        _sanitize(error_message, INVALID_REQUEST_MSG),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with standardized error response.
    """
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MSG)


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_error_handler)

    # Domain errors from the scanning pipeline
    app.add_exception_handler(ScannerError, scanner_exception_handler)

    app.add_exception_handler(ValueError, value_error_exception_handler)

    # Catch-all for any other exceptions
    app.add_exception_handler(Exception, generic_exception_handler)
