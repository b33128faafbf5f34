"""
Vigor — FastAPI Application.

Entry point for the dashboard API.
Run: uvicorn vigor.main:app --host 0.0.0.0 --port 8002 --reload

Routes:
  - GET  /api/v1/dashboard/summary
  - GET  /api/v1/dashboard/activity
  - GET  /api/v1/classes/today
  - POST /api/v1/classes/{class_id}/attendance
  - GET  /api/v1/revenue/trends
  - GET  /api/v1/staff-coverage
  - GET  /api/v1/memberships/expiring
  - GET  /health, /ready
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from vigor.api.routers.classes import router as classes_router
from vigor.api.routers.dashboard import router as dashboard_router
from vigor.api.routers.memberships import router as memberships_router
from vigor.api.routers.revenue import router as revenue_router
from vigor.api.routers.staff_coverage import router as staff_coverage_router
from vigor.config import settings
from vigor.db.engine import close_db, get_engine, init_db
from vigor.exceptions import register_exception_handlers
from vigor.middleware.error_handler import ErrorHandlerMiddleware
from vigor.middleware.request_context import RequestContextMiddleware
from vigor.middleware.tenant import TenantMiddleware

# ============================================================================
# LOGGING
# ============================================================================

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


# ============================================================================
# LIFESPAN
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown."""
    logger.info("vigor_starting", version=settings.app_version, environment=settings.environment)
    await init_db()
    yield
    await close_db()
    logger.info("vigor_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Multi-tenant gym operations dashboard.\n\n"
            "All endpoints except /health and /ready require "
            "`Authorization: Bearer <JWT>`; every query is scoped to the "
            "token's organisation."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_tags=[
            {"name": "health", "description": "Liveness and readiness checks"},
            {"name": "dashboard", "description": "Summary metrics and activity feed"},
            {"name": "classes", "description": "Today's class schedule"},
            {"name": "revenue", "description": "Revenue trends"},
            {"name": "staff", "description": "Staff shift coverage"},
            {"name": "memberships", "description": "Expiring memberships"},
        ],
    )

    register_exception_handlers(app)

    # ── Middleware (last added = outermost) ──
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(TenantMiddleware)
    app.add_middleware(RequestContextMiddleware)

    # CORS outermost so OPTIONS preflight is answered before auth
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Routes ────────────────────────────────────────────────────────
    app.include_router(dashboard_router)
    app.include_router(classes_router)
    app.include_router(revenue_router)
    app.include_router(staff_coverage_router)
    app.include_router(memberships_router)

    @app.get("/health", tags=["health"])
    async def health():
        """Liveness check. Does not touch the database."""
        return {
            "status": "ok",
            "version": settings.app_version,
            "service": "vigor-dashboard",
        }

    @app.get("/ready", tags=["health"])
    async def readiness():
        """Readiness check: 200 when the database answers, 503 otherwise."""
        try:
            async with get_engine().connect() as conn:
                await asyncio.wait_for(
                    conn.execute(text("SELECT 1")),
                    timeout=settings.health_check_timeout_seconds,
                )
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.warning("readiness_check_failed", error=str(exc))
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "checks": {"database": "unavailable"}},
            )
        return {"status": "ready", "checks": {"database": "ok"}}

    return app


app = create_app()
