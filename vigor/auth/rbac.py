"""
Role-Based Access Control.

Role hierarchy: MEMBER < STAFF < MANAGER < OWNER.
Members (gym customers) never see the operator dashboard.
"""

from enum import IntEnum

import structlog
from fastapi import Request

from vigor.exceptions import ErrorCode, ForbiddenError

logger = structlog.get_logger(__name__)


class Role(IntEnum):
    """Ordered role hierarchy — higher value = more access."""

    MEMBER = 10
    STAFF = 20
    MANAGER = 30
    OWNER = 40

    @classmethod
    def from_str(cls, value: str | None) -> "Role":
        """Convert a role claim to Role, case-insensitive. Unknown → MEMBER."""
        mapping = {
            "member": cls.MEMBER,
            "staff": cls.STAFF,
            "receptionist": cls.STAFF,
            "trainer": cls.STAFF,
            "manager": cls.MANAGER,
            "owner": cls.OWNER,
            "admin": cls.OWNER,
        }
        return mapping.get((value or "").lower(), cls.MEMBER)


def has_role(current_role: Role, minimum_role: Role) -> bool:
    """Check if current role meets or exceeds minimum role level."""
    return current_role >= minimum_role


def role_from_request(request: Request) -> Role:
    """Role from request.state (set by TenantMiddleware)."""
    return Role.from_str(getattr(request.state, "user_role", None))


def check_role(request: Request, minimum_role: Role) -> Role:
    """
    Check that the current request meets the minimum role level.

    Raises ForbiddenError (403 INSUFFICIENT_ROLE) if denied.
    """
    role = role_from_request(request)
    if not has_role(role, minimum_role):
        logger.warning(
            "role_denied",
            user_id=getattr(request.state, "user_id", "unknown"),
            role=role.name,
            required_role=minimum_role.name,
        )
        raise ForbiddenError(
            "Insufficient role for this resource",
            code=ErrorCode.INSUFFICIENT_ROLE,
            details={"required_role": minimum_role.name.lower(), "your_role": role.name.lower()},
        )
    return role


def require_role(minimum_role: Role):
    """FastAPI dependency factory: `Depends(require_role(Role.MANAGER))`."""

    def _dependency(request: Request) -> Role:
        return check_role(request, minimum_role)

    _dependency.__name__ = f"require_{minimum_role.name.lower()}"
    return _dependency
