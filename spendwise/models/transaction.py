"""
Core Data Models for Spend Wise

These models define the schemas of everything stored in the flat-file
store and of the raw output the AI providers hand back.

Stored documents are written by hand-edited files, older releases and
free-form manual entries, so the stored models are lenient on input:
amounts are coerced rather than rejected and unknown keys on a
transaction are kept as-is.
"""

import math
import re
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


UNRECOGNIZED_ITEM = "Unrecognized Receipt"
DEFAULT_CATEGORY = "Other"

CATEGORIES = [
    "Food",
    "Tech",
    "Transport",
    "Utilities",
    "Travel",
    "Entertainment",
    "Health",
    "Other",
]

_NUMBER_RE = re.compile(r"[-+]?(?:\d[\d,]*(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def coerce_amount(value: Any) -> float:
    """
    Convert a loosely typed amount into a float.

    Numbers pass through. Strings yield their first number, so
    "$1,249.50" becomes 1249.5. Anything unparseable becomes 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        match = _NUMBER_RE.search(str(value))
        if not match:
            return 0.0
        try:
            result = float(match.group().replace(",", ""))
        except ValueError:
            return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return date.today().isoformat()


# =============================================================================
# ENUMS
# =============================================================================

class Role(str, Enum):
    """Account roles. Only admins may manage users or wipe transactions."""
    ADMIN = "admin"
    VIEWER = "viewer"


# =============================================================================
# STORED MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A single spending record.

    Created either by the receipt pipeline or by a manual entry.
    Extra attributes sent with a manual entry are preserved.
    """
    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    id: int = Field(
        ...,
        description="Millisecond timestamp identifier"
    )
    date: str = Field(
        default_factory=today_iso,
        description="Transaction date (YYYY-MM-DD)"
    )
    item: str = Field(
        default=UNRECOGNIZED_ITEM,
        description="Store or item name"
    )
    amount: float = Field(
        default=0.0,
        description="Amount spent"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        description="Spending category"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> float:
        return coerce_amount(v)

    @field_validator("item", "category", "date", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        if v is None:
            return v
        return str(v)


class User(BaseModel):
    """
    An account allowed to use the API.

    The password field always holds a bcrypt hash, never plain text.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    username: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    password: str = Field(
        ...,
        description="bcrypt hash"
    )
    role: Role = Role.VIEWER

    def public(self) -> "PublicUser":
        """The user without its password hash."""
        return PublicUser(id=self.id, username=self.username, role=self.role)


class PublicUser(BaseModel):
    """A user as exposed over the API."""

    id: int
    username: str
    role: Role


class Database(BaseModel):
    """The whole flat-file document."""

    transactions: list[Transaction] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)


# =============================================================================
# AI PROVIDER OUTPUT
# =============================================================================

class ReceiptClassification(BaseModel):
    """
    What an AI provider claims to have read on a receipt.

    Providers answer in free-form JSON, so every field is optional and
    loosely typed. Turning this into a Transaction applies the defaults.
    """
    model_config = ConfigDict(extra="ignore")

    item: Optional[Any] = None
    amount: Optional[Any] = None
    category: Optional[Any] = None

    def to_transaction(self, transaction_id: int, on: Optional[str] = None) -> Transaction:
        """Build a transaction, falling back to placeholder values for blanks."""
        return Transaction(
            id=transaction_id,
            date=on or today_iso(),
            item=str(self.item) if self.item else UNRECOGNIZED_ITEM,
            amount=coerce_amount(self.amount or 0.0),
            category=str(self.category) if self.category else DEFAULT_CATEGORY,
        )

    @classmethod
    def unrecognized(cls) -> "ReceiptClassification":
        """The placeholder used when no provider produced a usable answer."""
        return cls()
