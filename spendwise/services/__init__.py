"""Services package."""

from spendwise.services.auth import (
    AuthError,
    InvalidTokenError,
    TokenService,
    hash_password,
    verify_password,
)
from spendwise.services.storage import (
    DuplicateError,
    FinanceStorageInterface,
    JsonFileStore,
    StorageError,
)

__all__ = [
    # Auth services
    "AuthError",
    "InvalidTokenError",
    "TokenService",
    "hash_password",
    "verify_password",
    # Storage services
    "DuplicateError",
    "FinanceStorageInterface",
    "JsonFileStore",
    "StorageError",
]
