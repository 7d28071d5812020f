"""
Password hashing and session tokens.

Passwords are stored as bcrypt hashes (cost 10). Hashes written by other
bcrypt implementations ($2a$ / $2b$ prefixes) verify as well, so an
existing store keeps working.

Sessions are stateless: a signed JWT carries the user's id, username and
role, and expires after a fixed lifetime. Nothing about a session is
kept server-side.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from pydantic import ValidationError

from spendwise.config import JWTSettings, get_settings
from spendwise.models.schemas import TokenClaims
from spendwise.models.transaction import User


BCRYPT_ROUNDS = 10


class AuthError(Exception):
    """Base exception for authentication errors."""
    pass


class InvalidTokenError(AuthError):
    """Token is malformed, has a bad signature or has expired."""
    pass


def hash_password(password: str) -> str:
    """Hash a plain-text password."""
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=BCRYPT_ROUNDS),
    ).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


class TokenService:
    """
    Issues and verifies session tokens with a shared secret.
    """

    def __init__(self, settings: Optional[JWTSettings] = None):
        self._settings = settings or get_settings().jwt

    @property
    def lifetime(self) -> timedelta:
        return timedelta(hours=self._settings.expire_hours)

    def issue(self, user: User, now: Optional[datetime] = None) -> str:
        """Sign a token for the given user."""
        now = now or datetime.now(timezone.utc)
        payload = {
            "id": user.id,
            "username": user.username,
            "role": user.role.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self.lifetime).timestamp()),
        }
        return jwt.encode(payload, self._settings.secret, algorithm=self._settings.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and check a token.

        Raises:
            InvalidTokenError: If the token cannot be trusted
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret,
                algorithms=[self._settings.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        try:
            return TokenClaims.model_validate(payload)
        except ValidationError as e:
            raise InvalidTokenError("Token is missing required claims") from e
