"""
JWT token tests.
"""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from vigor.auth.jwt import TokenError, create_access_token, decode_token
from vigor.config import settings


class TestTokens:
    def test_round_trip_claims(self):
        company = str(uuid.uuid4())
        token = create_access_token("user-1", company, email="a@example.com", role="manager")
        claims = decode_token(token)
        assert claims["user_id"] == "user-1"
        assert claims["company_id"] == company
        assert claims["role"] == "manager"
        assert claims["email"] == "a@example.com"
        assert claims["exp"] > claims["iat"]

    def test_default_role_is_staff(self):
        claims = decode_token(create_access_token("u", str(uuid.uuid4())))
        assert claims["role"] == "staff"

    def test_expired(self):
        token = create_access_token("u", str(uuid.uuid4()), expires_delta=timedelta(seconds=-5))
        with pytest.raises(TokenError):
            decode_token(token)

    def test_tampered(self):
        token = create_access_token("u", str(uuid.uuid4()))
        header, payload, signature = token.split(".")
        with pytest.raises(TokenError):
            decode_token(f"{header}.{payload}.{signature[::-1]}")

    def test_wrong_algorithm_rejected(self):
        token = jwt.encode(
            {"user_id": "u", "company_id": str(uuid.uuid4())},
            settings.jwt_secret,
            algorithm="HS512",
        )
        with pytest.raises(TokenError):
            decode_token(token)

    @pytest.mark.parametrize("missing", ["user_id", "company_id"])
    def test_required_claims(self, missing):
        claims = {"user_id": "u", "company_id": str(uuid.uuid4())}
        del claims[missing]
        token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(TokenError, match=missing):
            decode_token(token)
