"""
Request Context Middleware.

Outermost vigor middleware. It names the request, binds that id into the
structlog contextvars and writes a single `request_completed` line once
the response is ready. That line carries the tenant, user and role the
TenantMiddleware resolved (read back from request.state, since bindings
made further in do not flow back out here).

Status decides the level: 5xx at error, 4xx at warning, the rest at info.
Health and readiness polls log at debug.
"""

import re
import time
import uuid
from typing import Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"

# Echoed into headers and logs, so anything else is replaced
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

QUIET_PATHS = frozenset({"/health", "/ready"})


def resolve_request_id(supplied: Optional[str]) -> str:
    """Keep a caller's correlation id when it is sane, otherwise mint one."""
    if supplied and _REQUEST_ID_PATTERN.match(supplied):
        return supplied
    return str(uuid.uuid4())


def completion_level(status_code: int, path: str = "") -> str:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    if path in QUIET_PATHS:
        return "debug"
    return "info"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, timing and the per-request completion line."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms}ms"

        # unset on public paths and on requests the tenant check refused
        state = request.state
        log = getattr(logger, completion_level(response.status_code, request.url.path))
        log(
            "request_completed",
            status=response.status_code,
            elapsed_ms=elapsed_ms,
            company_id=getattr(state, "company_id", None),
            user_id=getattr(state, "user_id", None),
            role=getattr(state, "user_role", None),
        )
        return response
