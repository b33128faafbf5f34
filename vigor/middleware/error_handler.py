"""
Global Error Handler Middleware.

Catches all unhandled exceptions and returns a structured JSON response.
Never leaks stack traces, SQL, or internal details to clients; every
error gets an error_id for correlation with server logs.
"""

import traceback
import uuid

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from vigor.config import settings
from vigor.exceptions import ErrorCode

logger = structlog.get_logger(__name__)

GENERIC_MESSAGE = "An internal error occurred. Please try again later."


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Innermost safety net for anything the exception handlers did not map.

    Response body:
    {
      "error": "INTERNAL_ERROR",
      "message": "An internal error occurred. Please try again later.",
      "error_id": "uuid for log correlation"
    }
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)

        except Exception as exc:
            error_id = str(uuid.uuid4())

            logger.error(
                "unhandled_exception",
                error_id=error_id,
                path=request.url.path,
                method=request.method,
                error=str(exc),
                traceback=traceback.format_exc(),
            )

            body: dict = {
                "error": ErrorCode.INTERNAL_ERROR.value,
                "message": GENERIC_MESSAGE,
                "error_id": error_id,
            }

            # Type name only, never the traceback
            if settings.debug:
                body["debug_hint"] = type(exc).__name__

            return JSONResponse(status_code=500, content=body)
