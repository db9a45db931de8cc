"""
Domain exceptions raised by the service layer.

Each exception carries a stable ``error_code`` and the HTTP status the API
layer answers with. Services never raise ``HTTPException`` directly; the
handlers registered in ``tasktracker.main`` translate these.
"""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class TrackerException(Exception):
    """Base class for every caller-facing error."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationException(TrackerException):
    """Malformed input or a structurally invalid reference."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"


class NotFoundException(TrackerException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"


class ForbiddenException(TrackerException):
    """The caller has no role at all on the project."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "forbidden"


class InsufficientPermissionsException(TrackerException):
    """The caller has a role on the project, but a lower one than required."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "insufficient_permissions"


class ConflictException(TrackerException):
    status_code = status.HTTP_409_CONFLICT
    error_code = "conflict"


class InvalidArgumentException(TrackerException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "invalid_argument"


def _error_body(error_code: str, detail) -> dict:
    return {"error": error_code, "detail": detail}


async def tracker_exception_handler(request: Request, exc: TrackerException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code, exc.detail),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=ValidationException.status_code,
        content=_error_body(ValidationException.error_code, errors),
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Storage failure while handling %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("infrastructure_error", "Storage is unavailable"),
    )
