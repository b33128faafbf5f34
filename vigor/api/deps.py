"""
FastAPI dependencies for API routes.

Re-exports auth dependencies for convenience.
"""

from vigor.auth.dependencies import TenantContext, get_company_id, get_db, get_tenant, get_user_id
from vigor.auth.rbac import Role, require_role

__all__ = [
    "Role",
    "TenantContext",
    "get_company_id",
    "get_db",
    "get_tenant",
    "get_user_id",
    "require_role",
]
