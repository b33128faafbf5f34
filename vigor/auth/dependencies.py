"""
FastAPI dependencies for the database session and tenant context.

For SQLite (dev/tests): queries filter by company_id, nothing else.
For PostgreSQL (prod): SET LOCAL for RLS on top of the explicit filters,
optionally inside a REPEATABLE READ READ ONLY snapshot.
"""

import uuid
from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.auth.rbac import Role, role_from_request
from vigor.config import settings
from vigor.db.engine import get_session_factory
from vigor.exceptions import UnauthorizedError


@dataclass(frozen=True)
class TenantContext:
    """Who is calling, as established by the tenant middleware."""

    company_id: uuid.UUID
    user_id: str
    role: Role


def get_company_id(request: Request) -> uuid.UUID:
    """Extract company_id from request state (set by TenantMiddleware)."""
    company_id = getattr(request.state, "company_id", None)
    if not company_id:
        raise UnauthorizedError("Missing tenant context")
    try:
        return uuid.UUID(str(company_id))
    except ValueError:
        raise UnauthorizedError("Malformed tenant context") from None


def get_user_id(request: Request) -> str:
    """Extract user_id from request state (set by TenantMiddleware)."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise UnauthorizedError("Missing user context")
    return str(user_id)


def get_tenant(
    request: Request,
    company_id: uuid.UUID = Depends(get_company_id),
    user_id: str = Depends(get_user_id),
) -> TenantContext:
    return TenantContext(company_id=company_id, user_id=user_id, role=role_from_request(request))


async def get_db(
    company_id: uuid.UUID = Depends(get_company_id),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a read session bound to the caller's tenant.

    The service never writes, so the transaction is always rolled back.
    """
    factory = get_session_factory()
    async with factory() as session:
        if settings.is_postgres:
            if settings.snapshot_reads:
                await session.execute(
                    text("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ READ ONLY")
                )
            # asyncpg does not support parameterized SET LOCAL; company_id is
            # a parsed uuid.UUID, so its str() is safe to interpolate.
            await session.execute(text(f"SET LOCAL app.current_company_id = '{company_id}'"))

        try:
            yield session
        finally:
            await session.rollback()
