"""
Request and response bodies of the REST API.

Shapes follow what the browser client already expects, e.g. login
returns a ``success`` flag next to the token.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from spendwise.models.transaction import DEFAULT_CATEGORY, Role, Transaction


# =============================================================================
# AUTH
# =============================================================================

class LoginRequest(BaseModel):
    username: str
    password: str


class SessionUser(BaseModel):
    username: str
    role: Role


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: SessionUser


class TokenClaims(BaseModel):
    """Decoded content of a session token."""

    id: int
    username: str
    role: Role
    iat: Optional[int] = None
    exp: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    role: Optional[Role] = None


# =============================================================================
# TRANSACTIONS
# =============================================================================

class ManualTransactionRequest(BaseModel):
    """
    A hand-entered transaction.

    Any extra attributes are stored alongside the transaction.
    """
    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    item: str = Field(..., min_length=1, max_length=200)
    amount: float
    category: str = DEFAULT_CATEGORY
    date: Optional[str] = Field(
        default=None,
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="Defaults to today"
    )


class SuccessResponse(BaseModel):
    success: bool = True


class UploadOutcome(BaseModel):
    """Result for one file of an upload batch."""

    success: bool
    filename: Optional[str] = None
    transaction: Optional[Transaction] = None
    error: Optional[str] = None


class UploadResponse(BaseModel):
    success: bool = True
    results: list[UploadOutcome] = Field(default_factory=list)


# =============================================================================
# INTELLIGENCE
# =============================================================================

class ChatRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)


class ChatResponse(BaseModel):
    success: bool = True
    answer: str


class BudgetUsage(BaseModel):
    """Spending in one budget category against its limit."""

    name: str
    limit: float
    actual: float
    percent: int = Field(ge=0, le=100)


class CategoryTotal(BaseModel):
    name: str
    amount: float


class DailyTotal(BaseModel):
    date: str
    amount: float


class SpendingSummary(BaseModel):
    total: float
    by_category: list[CategoryTotal] = Field(default_factory=list)
    daily: list[DailyTotal] = Field(default_factory=list)


class DatabaseStats(BaseModel):
    size: int
    records: int


class HealthReport(BaseModel):
    engine: str
    uptime: float
    ai_nodes: dict[str, str]
    database: DatabaseStats
