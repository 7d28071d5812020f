"""
Abstract Storage Interface

We define an abstract interface for storage operations so that the
HTTP layer and the receipt pipeline never touch the file format directly.
This allows us to:
1. Swap the flat JSON file for a real database later
2. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the API needs.
"""

from abc import ABC, abstractmethod
from typing import Optional

from spendwise.models.transaction import Transaction, User


class FinanceStorageInterface(ABC):
    """
    Abstract interface for transaction and user storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create an empty store if none exists yet."""
        pass

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        List all transactions, newest first.
        """
        pass

    @abstractmethod
    async def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Store a transaction in front of all existing ones.

        Returns:
            The stored transaction

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def clear_transactions(self) -> int:
        """
        Remove every transaction.

        Returns:
            Number of transactions removed
        """
        pass

    @abstractmethod
    async def list_users(self) -> list[User]:
        """List all users, including password hashes."""
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """
        Look up a user by exact username.

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def add_user(self, user: User) -> User:
        """
        Store a new user.

        Raises:
            DuplicateError: If the username is taken
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool:
        """
        Delete a user by ID.

        Returns:
            True if a user was removed, False if no user had that ID
        """
        pass

    @abstractmethod
    async def ensure_default_admin(self, username: str, password_hash: str) -> Optional[User]:
        """
        Create an admin account when the store has no users at all.

        Returns:
            The created admin, or None if users already existed
        """
        pass

    @abstractmethod
    async def next_id(self) -> int:
        """Allocate an identifier for a new transaction or user."""
        pass

    @abstractmethod
    async def document_size(self) -> int:
        """Size of the serialized store in characters."""
        pass

    @abstractmethod
    async def transaction_count(self) -> int:
        """Number of stored transactions."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
