"""Unit tests for session token validation

Tests cover:
- Token minting with the expected claims
- Signature and expiry validation
- Rejection of tokens signed with another secret
"""

from uuid import uuid4

import jwt
import pytest

from auth.jwt import create_access_token, decode_token


class TestCreateAccessToken:
    """Test token minting"""

    def test_token_has_three_parts(self):
        token = create_access_token(profile_id=uuid4(), email="user@example.com")
        assert isinstance(token, str)
        assert len(token.split(".")) == 3

    def test_token_contains_subject_and_email(self):
        profile_id = uuid4()
        token = create_access_token(profile_id=profile_id, email="user@example.com")

        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload["sub"] == str(profile_id)
        assert payload["email"] == "user@example.com"
        assert payload["exp"] > payload["iat"]

    def test_token_carries_no_role_claims(self):
        """Role, plan and KYC are always read from the profile row"""
        token = create_access_token(profile_id=uuid4(), email="user@example.com")
        payload = jwt.decode(token, options={"verify_signature": False})
        assert "role" not in payload
        assert "plan_type" not in payload


class TestDecodeToken:

    def test_roundtrip(self):
        profile_id = uuid4()
        payload = decode_token(create_access_token(profile_id=profile_id, email="a@example.com"))
        assert payload["sub"] == str(profile_id)

    def test_expired_token_rejected(self):
        token = create_access_token(profile_id=uuid4(), email="a@example.com", expires_in_minutes=-5)
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_foreign_secret_rejected(self):
        token = create_access_token(
            profile_id=uuid4(),
            email="a@example.com",
            secret="some-other-secret-that-is-long-enough-for-hs256",
        )
        with pytest.raises(jwt.InvalidSignatureError):
            decode_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_token("not-a-token")
