"""
JWT access tokens.

Tokens are issued by the identity provider with HS256 and carry the
tenant context: user_id, company_id, role, email. `create_access_token`
exists for local tooling and tests.
"""

from datetime import timedelta

from jose import JWTError, jwt

from vigor.config import settings
from vigor.timeutil import now_utc

REQUIRED_CLAIMS = ("user_id", "company_id")


class TokenError(Exception):
    """Raised when token creation or validation fails."""

    pass


def create_access_token(
    user_id: str,
    company_id: str,
    email: str = "",
    role: str = "staff",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = now_utc()
    payload = {
        "user_id": str(user_id),
        "company_id": str(company_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """
    Decode and validate an access token.

    Returns the claims dict. Raises TokenError on any failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise TokenError(f"Invalid token: {e}") from e

    missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
    if missing:
        raise TokenError(f"Token missing required claims: {', '.join(missing)}")
    return payload
