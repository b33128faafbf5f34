"""
Memberships API Endpoint.

GET /api/v1/memberships/expiring?days=7|14&page=&limit= — renewal work-list.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.api.deps import Role, TenantContext, get_db, get_tenant, require_role
from vigor.config import settings
from vigor.schemas.memberships import ExpiringMemberships
from vigor.services.membership_service import MembershipService

router = APIRouter(prefix=f"{settings.api_prefix}/memberships", tags=["memberships"])

_service = MembershipService()


@router.get("/expiring", response_model=ExpiringMemberships)
async def expiring_memberships(
    days: Literal["7", "14"] = Query(default="14"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    _role: Role = Depends(require_role(Role.STAFF)),
):
    """ACTIVE or PAST_DUE memberships ending within `days`, soonest first."""
    return await _service.expiring(db, str(tenant.company_id), int(days), page, limit)
