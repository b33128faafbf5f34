"""
Tenant Context Middleware.

Every non-public request must carry a bearer token whose claims name the
tenant. The claims land on request.state for the dependencies in
vigor.auth.dependencies; nothing downstream trusts anything else.

An optional X-Org-Id header must agree with the token's company.
"""

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from vigor.auth.jwt import TokenError, decode_token
from vigor.exceptions import ErrorCode

logger = structlog.get_logger(__name__)

# Paths that bypass authentication
PUBLIC_PATHS = frozenset({
    "/health",
    "/ready",
    "/docs",
    "/openapi.json",
    "/redoc",
})

ORG_HEADER = "X-Org-Id"


def _error(status_code: int, code: ErrorCode, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code.value, "message": message})


class TenantMiddleware(BaseHTTPMiddleware):
    """Resolve {company_id, user_id, role} from the bearer token."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path

        # CORS preflight is answered by CORSMiddleware
        if request.method == "OPTIONS":
            return await call_next(request)

        if path in PUBLIC_PATHS or path.rstrip("/") in PUBLIC_PATHS:
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            return _error(401, ErrorCode.UNAUTHORIZED, "Missing authentication token")

        try:
            payload = decode_token(token)
        except TokenError as e:
            logger.warning("tenant_auth_failed", error=str(e), path=path)
            return _error(401, ErrorCode.UNAUTHORIZED, "Invalid or expired token")

        company_id = str(payload["company_id"])
        header_org = request.headers.get(ORG_HEADER)
        if header_org and header_org != company_id:
            logger.warning(
                "tenant_header_mismatch",
                company_id=company_id,
                header_org_id=header_org,
                path=path,
            )
            return _error(403, ErrorCode.FORBIDDEN, "Access denied to organization data")

        request.state.company_id = company_id
        request.state.user_id = str(payload["user_id"])
        request.state.user_email = payload.get("email", "")
        request.state.user_role = payload.get("role", "member")
        structlog.contextvars.bind_contextvars(company_id=company_id)

        return await call_next(request)

    def _extract_token(self, request: Request) -> str | None:
        """Extract JWT from the Authorization header."""
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer "):
            return auth[7:].strip() or None
        return None
