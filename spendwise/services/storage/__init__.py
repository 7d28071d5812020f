"""
Storage Services Package

Provides the abstract storage interface and its flat JSON file implementation.
"""

from spendwise.services.storage.interface import (
    DuplicateError,
    FinanceStorageInterface,
    StorageError,
)
from spendwise.services.storage.json_store import JsonFileStore

__all__ = [
    # Interfaces
    "FinanceStorageInterface",
    # Exceptions
    "DuplicateError",
    "StorageError",
    # JSON file implementation
    "JsonFileStore",
]
