"""Exception handlers that render every failure as the JSON error envelope."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from idregistry.core.exceptions import (
    AdminAuthorizationError,
    AllocationConflictError,
    ConfigurationError,
    GenerationExhaustedError,
    IdNotFoundError,
    IdRegistryError,
    InvalidRequestError,
    ServiceSuspendedError,
    StorageUnavailableError,
)
from idregistry.schemas.common import ApiError

logger = logging.getLogger(__name__)

_DEFAULT_ERROR_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    501: "not_implemented",
    503: "service_unavailable",
}

_DEFAULT_MESSAGES: dict[int, str] = {
    400: "Invalid request parameters or body",
    401: "Authentication required",
    404: "Resource not found",
    501: "This feature is not yet available",
    503: "Server is temporarily suspended for maintenance",
}

# Most specific first.
_ERROR_MAP: tuple[tuple[type[IdRegistryError], int, str], ...] = (
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST, "bad_request"),
    (AdminAuthorizationError, status.HTTP_401_UNAUTHORIZED, "unauthorized"),
    (IdNotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (ServiceSuspendedError, status.HTTP_503_SERVICE_UNAVAILABLE, "service_unavailable"),
    (GenerationExhaustedError, status.HTTP_500_INTERNAL_SERVER_ERROR, "id_space_exhausted"),
    (AllocationConflictError, status.HTTP_500_INTERNAL_SERVER_ERROR, "allocation_conflict"),
    (StorageUnavailableError, status.HTTP_500_INTERNAL_SERVER_ERROR, "storage_unavailable"),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR, "configuration_error"),
)


def error_response(
    *,
    status_code: int,
    error: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload = ApiError(error=error, message=message, details=details or None)
    return JSONResponse(
        content=payload.model_dump(exclude_none=True),
        status_code=status_code,
        headers=headers,
    )


def not_implemented_response(message: str | None = None) -> JSONResponse:
    return error_response(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        error="not_implemented",
        message=message or _DEFAULT_MESSAGES[501],
    )


def resolve_error(exc: IdRegistryError) -> tuple[int, str]:
    """Status code and error code for an application error."""
    for error_cls, status_code, code in _ERROR_MAP:
        if isinstance(exc, error_cls):
            return status_code, code
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"


async def app_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, IdRegistryError)
    status_code, code = resolve_error(exc)
    if isinstance(exc, ServiceSuspendedError):
        logger.info("Request rejected while suspended", extra={"path": request.url.path})
    elif status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error": code, "reason": exc.message},
        )
    if code == "internal_error":
        # Unmapped storage errors carry driver text; keep it in the log only.
        return error_response(
            status_code=status_code,
            error=code,
            message="Internal server error",
        )
    return error_response(
        status_code=status_code,
        error=code,
        message=exc.message,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    code = _DEFAULT_ERROR_CODES.get(exc.status_code, "internal_error")
    message = exc.detail if isinstance(exc.detail, str) and exc.detail else None
    fallback = _DEFAULT_MESSAGES.get(exc.status_code, f"Unexpected error ({exc.status_code})")
    return error_response(
        status_code=exc.status_code,
        error=code,
        message=message or fallback,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = [
        {"loc": list(item.get("loc", ())), "msg": str(item.get("msg", ""))}
        for item in exc.errors()
    ]
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        error="bad_request",
        message=_DEFAULT_MESSAGES[400],
        details={"errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error="internal_error",
        message="Unexpected error (500)",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IdRegistryError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
