"""
Exception handlers - Map domain and gateway errors to the JSON error envelope.

Every error response has the shape
``{"success": false, "error": <message>, "code": <stable code>}`` plus
``details`` for validation failures.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from heroes_portal.adapters.database import DatabaseError
from heroes_portal.domain.exceptions import (
    AccountConflict,
    AccountSuspended,
    IdentityMismatch,
    InvalidCredentials,
    InvalidTokenStep,
    MultipleRegistryMatches,
    PortalError,
    ProfileNotFound,
    RegistryNotFound,
    TokenCorrupt,
    TokenExpired,
    TokenNotFound,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[PortalError], int] = {
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    TokenNotFound: status.HTTP_400_BAD_REQUEST,
    TokenExpired: status.HTTP_400_BAD_REQUEST,
    TokenCorrupt: status.HTTP_400_BAD_REQUEST,
    InvalidTokenStep: status.HTTP_400_BAD_REQUEST,
    RegistryNotFound: status.HTTP_404_NOT_FOUND,
    ProfileNotFound: status.HTTP_404_NOT_FOUND,
    IdentityMismatch: status.HTTP_401_UNAUTHORIZED,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    AccountSuspended: status.HTTP_403_FORBIDDEN,
    MultipleRegistryMatches: status.HTTP_409_CONFLICT,
    AccountConflict: status.HTTP_409_CONFLICT,
}

GENERIC_ERROR = "Service temporarily unavailable. Please try again later."


def status_for(exc: PortalError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    status_code: int, message: str, code: str, details: list[str] | None = None
) -> JSONResponse:
    content: dict = {
        "success": False,
        "error": message,
        "code": code,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    details = exc.details if isinstance(exc, ValidationFailed) else None
    return error_response(status_for(exc), exc.message, exc.code, details)


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error("Database error on %s: %s (%s)", request.url.path, exc, exc.code)
    if exc.transient:
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Database connection issue. Please try again in a moment.",
            exc.code,
        )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR, "SERVICE_ERROR")


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST, "Invalid request", "VALIDATION_ERROR", details
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR, "SERVICE_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
