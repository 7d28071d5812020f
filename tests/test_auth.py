"""
Tests for password hashing and session tokens.
"""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
import pytest

from spendwise.config import JWTSettings
from spendwise.models.transaction import Role, User
from spendwise.services.auth import (
    InvalidTokenError,
    TokenService,
    hash_password,
    verify_password,
)


@pytest.fixture
def jwt_settings():
    return JWTSettings(secret="unit-test-secret", expire_hours=8)


@pytest.fixture
def tokens(jwt_settings):
    return TokenService(jwt_settings)


@pytest.fixture
def admin_user():
    return User(id=17, username="admin", password="hash", role=Role.ADMIN)


class TestPasswords:
    """bcrypt hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password("admin123")
        assert hashed.startswith("$2b$10$")
        assert verify_password("admin123", hashed)
        assert not verify_password("wrong", hashed)

    def test_verifies_2a_prefixed_hashes(self):
        hashed = bcrypt.hashpw(b"admin123", bcrypt.gensalt(rounds=4, prefix=b"2a")).decode()
        assert hashed.startswith("$2a$")
        assert verify_password("admin123", hashed)

    def test_non_bcrypt_value_does_not_verify(self):
        assert verify_password("admin123", "admin123") is False


class TestTokens:
    """JWT issue and verify."""

    def test_issue_and_verify(self, tokens, admin_user):
        claims = tokens.verify(tokens.issue(admin_user))
        assert claims.id == 17
        assert claims.username == "admin"
        assert claims.role == Role.ADMIN
        assert claims.is_admin

    def test_token_expires_after_lifetime(self, tokens, admin_user):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        payload = jwt.decode(tokens.issue(admin_user, now=now), options={"verify_signature": False})
        assert payload["exp"] - payload["iat"] == 8 * 3600

    def test_expired_token_rejected(self, tokens, admin_user):
        issued = datetime.now(timezone.utc) - timedelta(hours=9)
        with pytest.raises(InvalidTokenError, match="expired"):
            tokens.verify(tokens.issue(admin_user, now=issued))

    def test_wrong_secret_rejected(self, tokens, admin_user):
        other = TokenService(JWTSettings(secret="another-secret-value"))
        with pytest.raises(InvalidTokenError):
            tokens.verify(other.issue(admin_user))

    def test_garbage_rejected(self, tokens):
        with pytest.raises(InvalidTokenError):
            tokens.verify("not-a-token")

    def test_token_without_expiry_rejected(self, tokens, jwt_settings):
        token = jwt.encode(
            {"id": 1, "username": "admin", "role": "admin"},
            jwt_settings.secret,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_token_missing_claims_rejected(self, tokens, jwt_settings):
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        token = jwt.encode({"username": "admin", "exp": exp}, jwt_settings.secret, algorithm="HS256")
        with pytest.raises(InvalidTokenError, match="claims"):
            tokens.verify(token)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
