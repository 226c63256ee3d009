"""Domain error taxonomy and the JSON envelope used for failures.

Routes and services raise :class:`AppError` subclasses for expected
failures; the handlers registered in ``main.py`` turn them into
``{"success": false, "message": ...}`` responses. Anything else becomes a
sanitized 500.
"""

from core.logging import logger
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for failures that map to a specific HTTP status."""

    status_code = status.HTTP_400_BAD_REQUEST
    headers: dict[str, str] | None = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(AppError):
    """Username or email already belongs to another account."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AppError):
    """Missing, invalid or expired credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class NotFoundError(AppError):
    """Resource does not exist or is not owned by the caller."""

    status_code = status.HTTP_404_NOT_FOUND


def error_body(message: str, errors: list[dict] | None = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


def _field_name(location: tuple) -> str:
    # ("body", "title") -> "title"; ("query", "status") -> "status"
    parts = [str(part) for part in location if part not in ("body", "query", "path")]
    return ".".join(parts)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        "{} {} failed with {}: {}",
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report field-level validation messages with a 400 status."""

    errors = []
    for error in exc.errors():
        message = error.get("msg", "Invalid value")
        # NOTE: pydantic prefixes messages raised from validators.
        message = message.removeprefix("Value error, ")
        errors.append({"field": _field_name(tuple(error.get("loc", ()))), "message": message})
    logger.debug("Validation failed for {} {}: {}", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", errors),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert unexpected failures into a generic 500 without internal details."""

    logger.opt(exception=exc).error(
        "Unhandled error during {} {}", request.method, request.url.path
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )
