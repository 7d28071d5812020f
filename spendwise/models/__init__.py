"""
Data Models Package

This package contains all Pydantic models used in Spend Wise.
All data flowing through the system must conform to these schemas.
"""

from spendwise.models.transaction import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    UNRECOGNIZED_ITEM,
    Database,
    PublicUser,
    ReceiptClassification,
    Role,
    Transaction,
    User,
    coerce_amount,
    today_iso,
)
from spendwise.models.schemas import (
    BudgetUsage,
    CategoryTotal,
    ChatRequest,
    ChatResponse,
    CreateUserRequest,
    DailyTotal,
    DatabaseStats,
    HealthReport,
    LoginRequest,
    LoginResponse,
    ManualTransactionRequest,
    SessionUser,
    SpendingSummary,
    SuccessResponse,
    TokenClaims,
    UploadOutcome,
    UploadResponse,
)
from spendwise.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Stored models
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "UNRECOGNIZED_ITEM",
    "Database",
    "PublicUser",
    "ReceiptClassification",
    "Role",
    "Transaction",
    "User",
    "coerce_amount",
    "today_iso",
    # API bodies
    "BudgetUsage",
    "CategoryTotal",
    "ChatRequest",
    "ChatResponse",
    "CreateUserRequest",
    "DailyTotal",
    "DatabaseStats",
    "HealthReport",
    "LoginRequest",
    "LoginResponse",
    "ManualTransactionRequest",
    "SessionUser",
    "SpendingSummary",
    "SuccessResponse",
    "TokenClaims",
    "UploadOutcome",
    "UploadResponse",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
