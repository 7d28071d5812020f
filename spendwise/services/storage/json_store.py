"""
Flat JSON File Storage Implementation

A single JSON document holds every transaction and every user:

    {"transactions": [...], "users": [...]}

The document is read in full on every operation and rewritten in full on
every mutation. There are no partial updates and no guarantees across
concurrent writers in different processes; this store is meant for a
single personal instance.

TRADEOFFS:
- Every request costs a full parse (fine for personal-scale data)
- A file that is empty or not valid JSON reads as an empty store
- Older releases stored a bare array of transactions; that layout is
  migrated in memory on read and written back in the new layout on the
  next mutation
"""

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from spendwise.config import get_settings
from spendwise.models.transaction import Database, Role, Transaction, User
from spendwise.services.storage.interface import (
    DuplicateError,
    FinanceStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


def _empty_document() -> dict:
    return {"transactions": [], "users": []}


class JsonFileStore(FinanceStorageInterface):
    """
    Flat-file implementation of the finance storage interface.

    Transactions are kept newest first: new entries are inserted at the
    front of the array.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path or get_settings().storage.file)
        self._last_id = 0

    @property
    def path(self) -> Path:
        return self._path

    # -------------------------------------------------------------------------
    # Document I/O
    # -------------------------------------------------------------------------

    def _read_raw(self) -> dict:
        """Read the document as plain JSON, tolerating legacy and broken files."""
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("store_missing", path=str(self._path))
            return _empty_document()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("store_unreadable", path=str(self._path))
            return _empty_document()

        if isinstance(data, list):
            logger.info("store_legacy_migrated", path=str(self._path), transactions=len(data))
            return {"transactions": data, "users": []}

        if not isinstance(data, dict):
            logger.warning("store_unreadable", path=str(self._path))
            return _empty_document()

        if not isinstance(data.get("transactions"), list):
            data["transactions"] = []
        if not isinstance(data.get("users"), list):
            data["users"] = []
        return data

    def load(self) -> Database:
        """Read and validate the whole document."""
        raw = self._read_raw()
        try:
            return Database.model_validate(raw)
        except ValidationError as e:
            raise StorageError(f"Store {self._path} holds invalid records: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write_text(self, text: str) -> None:
        """Write to a sibling temp file and atomically swap it in."""
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def save(self, database: Database) -> None:
        """Rewrite the whole document."""
        text = json.dumps(database.model_dump(mode="json"), indent=2, ensure_ascii=False)
        try:
            self._write_text(text)
        except OSError as e:
            raise StorageError(f"Failed to write store {self._path}: {e}") from e

    # -------------------------------------------------------------------------
    # Interface
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        if self._path.exists():
            return
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("store_created", path=str(self._path))
        self.save(Database())

    async def list_transactions(self) -> list[Transaction]:
        return self.load().transactions

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        database = self.load()
        database.transactions.insert(0, transaction)
        self.save(database)
        return transaction

    async def clear_transactions(self) -> int:
        database = self.load()
        removed = len(database.transactions)
        database.transactions = []
        self.save(database)
        return removed

    async def list_users(self) -> list[User]:
        return self.load().users

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self.load().users:
            if user.username == username:
                return user
        return None

    async def add_user(self, user: User) -> User:
        database = self.load()
        if any(existing.username == user.username for existing in database.users):
            raise DuplicateError(f"User exists: {user.username}")
        database.users.append(user)
        self.save(database)
        return user

    async def delete_user(self, user_id: int) -> bool:
        database = self.load()
        remaining = [user for user in database.users if user.id != user_id]
        removed = len(remaining) != len(database.users)
        database.users = remaining
        self.save(database)
        return removed

    async def ensure_default_admin(self, username: str, password_hash: str) -> Optional[User]:
        database = self.load()
        if database.users:
            return None
        logger.info("default_admin_created", username=username)
        admin = User(
            id=self._allocate_id(database),
            username=username,
            password=password_hash,
            role=Role.ADMIN,
        )
        database.users.append(admin)
        self.save(database)
        return admin

    async def next_id(self) -> int:
        return self._allocate_id(self.load())

    async def document_size(self) -> int:
        raw = self._read_raw()
        return len(json.dumps(raw, separators=(",", ":"), ensure_ascii=False))

    async def transaction_count(self) -> int:
        return len(self._read_raw()["transactions"])

    def _allocate_id(self, database: Database) -> int:
        """
        Millisecond timestamp, bumped past every ID already in use.

        Several receipts of one batch can be stored within the same
        millisecond, so a plain timestamp is not unique on its own.
        """
        taken = [self._last_id]
        taken.extend(tx.id for tx in database.transactions)
        taken.extend(user.id for user in database.users)
        candidate = int(time.time() * 1000)
        highest = max(taken)
        if candidate <= highest:
            candidate = highest + 1
        self._last_id = candidate
        return candidate
