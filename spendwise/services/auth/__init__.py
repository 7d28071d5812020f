"""Authentication services."""

from spendwise.services.auth.security import (
    AuthError,
    InvalidTokenError,
    TokenService,
    hash_password,
    verify_password,
)

__all__ = [
    "AuthError",
    "InvalidTokenError",
    "TokenService",
    "hash_password",
    "verify_password",
]
