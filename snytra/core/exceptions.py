"""
HTTP exceptions with consistent logging and a single JSON error envelope.

Usage:
    raise NotFoundError("Reservation", reservation_id)
    raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    raise ConflictError("A table with this number already exists")
"""

from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

logger = structlog.get_logger(__name__)


class AppException(HTTPException):
    """Base exception that logs itself when raised"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: Optional[dict[str, str]] = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Malformed or missing input (400)"""

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, log_level="info", **log_context)


class UnauthorizedError(AppException):
    """Missing or invalid credentials (401)"""

    def __init__(self, detail: str = "Could not validate credentials", **log_context: Any):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


class ForbiddenError(AppException):
    """Authenticated but not allowed (403)"""

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, **log_context)


class NotFoundError(AppException):
    """Referenced entity does not exist (404)"""

    def __init__(self, entity: str, entity_id: Any = None, **log_context: Any):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            f"{entity} not found",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class ConflictError(AppException):
    """State conflict such as a duplicate key (409)"""

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(status.HTTP_409_CONFLICT, detail, **log_context)


def error_envelope(message: str, status_code: int, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "success": False},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_envelope(str(exc.detail), exc.status_code, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    missing = [
        ".".join(str(part) for part in error["loc"][1:])
        for error in errors
        if error.get("type") == "missing"
    ]
    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"Invalid value for {field}: {first.get('msg', 'invalid')}" if field else "Invalid request"
    logger.info("Request validation failed", path=request.url.path, errors=len(errors))
    return error_envelope(message, status.HTTP_400_BAD_REQUEST)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_type=type(exc).__name__)
    return error_envelope("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
