"""
Application Exceptions Module.

Centralized exception definitions with:
- Error codes for client handling
- HTTP status code mapping
- One JSON body shape for every error: {"error", "message", "field"?}
"""

from enum import Enum
from typing import Any, Dict, Optional

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

logger = structlog.get_logger(__name__)


# ============================================================================
# ERROR CODES
# ============================================================================


class ErrorCode(str, Enum):
    """Application error codes, returned verbatim in the `error` field."""

    # Query validation
    INVALID_ORG_ID = "INVALID_ORG_ID"
    INVALID_LOCATION_ID = "INVALID_LOCATION_ID"
    INVALID_RANGE = "INVALID_RANGE"
    INVALID_SINCE = "INVALID_SINCE"
    INVALID_LIMIT = "INVALID_LIMIT"
    INVALID_DATE = "INVALID_DATE"
    INVALID_PERIOD = "INVALID_PERIOD"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Access
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"

    # Resources / runtime
    NOT_FOUND = "NOT_FOUND"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    TIMEOUT = "TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================================================
# BASE EXCEPTION
# ============================================================================


class AppError(Exception):
    """Base exception for Vigor."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.field = field
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> dict:
        body: dict = {"error": self.code.value, "message": self.message}
        if self.field:
            body["field"] = self.field
        return body


# ============================================================================
# SPECIFIC EXCEPTIONS
# ============================================================================


class DashboardValidationError(AppError):
    """
    Invalid dashboard input.

    Carries one of the INVALID_* codes, VALIDATION_ERROR, or FORBIDDEN
    (tenant mismatch), which maps to 403 instead of 422.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        status_code = 403 if code == ErrorCode.FORBIDDEN else 422
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            field=field,
            details=details,
        )


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Missing tenant context"):
        super().__init__(message=message, code=ErrorCode.UNAUTHORIZED, status_code=401)


class ForbiddenError(AppError):
    """Caller is authenticated but may not perform this request."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, status_code=403, details=details)


class NotFoundError(AppError):
    """Resource not found (or not visible to this tenant)."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found",
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details={"resource": resource, "identifier": identifier},
        )


class FeatureNotImplementedError(AppError):
    def __init__(self, feature: str):
        super().__init__(
            message=f"{feature} is not implemented yet",
            code=ErrorCode.NOT_IMPLEMENTED,
            status_code=501,
            details={"feature": feature},
        )


class RequestTimeoutError(AppError):
    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            message=f"{operation} timed out",
            code=ErrorCode.TIMEOUT,
            status_code=504,
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )


class UpstreamDataFault(Exception):
    """
    A query returned data that cannot be right (negative counts, missing rows).

    Raised inside services and converted into a degraded field by the
    aggregator; never surfaced to clients.
    """


class ClientDisconnected(Exception):
    """The HTTP client went away while the request was still computing."""


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle AppError exceptions."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "app_error",
        error_code=exc.code.value,
        message=exc.message,
        status_code=exc.status_code,
        field=exc.field,
        details=exc.details,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Map FastAPI's own parameter/body validation into the uniform body."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("query", "path", "body")]
    error = AppError(
        message=first.get("msg", "Invalid request"),
        code=ErrorCode.VALIDATION_ERROR,
        status_code=422,
        field=".".join(loc) or None,
    )
    logger.info("request_validation_failed", field=error.field, message=error.message)
    return JSONResponse(status_code=422, content=error.to_response())


async def client_disconnected_handler(request: Request, exc: ClientDisconnected) -> Response:
    """Nobody is listening; 499 is what lands in access logs."""
    return Response(status_code=499)


def register_exception_handlers(app) -> None:
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ClientDisconnected, client_disconnected_handler)
