"""
Audit Models for Spend Wise

Every significant action in the system is logged for audit purposes:
sign-ins, receipt uploads, each AI provider attempt, saved transactions
and administrative changes. Together with a correlation ID this allows
reconstructing what happened to any uploaded batch.

Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


DESCRIPTION_MAX_LENGTH = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Authentication
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"

    # Receipt processing
    RECEIPT_UPLOADED = "receipt_uploaded"
    RECEIPT_REJECTED = "receipt_rejected"
    PROVIDER_SUCCEEDED = "provider_succeeded"
    PROVIDER_FAILED = "provider_failed"
    RECEIPT_UNRECOGNIZED = "receipt_unrecognized"

    # Persistence
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTIONS_CLEARED = "transactions_cleared"

    # User management
    USER_CREATED = "user_created"
    USER_DELETED = "user_deleted"

    # Assistant
    ASSISTANT_ANSWERED = "assistant_answered"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'user', 'receipt')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one upload batch)"
    )

    description: str = Field(
        ...,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    # Who did it
    actor: Optional[str] = Field(
        default=None,
        description="Username that triggered the event"
    )

    @field_validator("description", mode="before")
    @classmethod
    def clip_description(cls, v: Any) -> Any:
        # Usernames, filenames and provider output end up in here
        if isinstance(v, str) and len(v) > DESCRIPTION_MAX_LENGTH:
            return v[: DESCRIPTION_MAX_LENGTH - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "actor": self.actor,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.receipt_uploaded("scan.jpg", 2048, "image/jpeg", correlation_id)
        event = AuditEventBuilder.transaction_saved(tx.id, tx.item, tx.amount, correlation_id)
    """

    @staticmethod
    def login_succeeded(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            description=f"User signed in: {username}",
            actor=username,
        )

    @staticmethod
    def login_failed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Failed sign-in attempt for: {username}",
            actor=username,
        )

    @staticmethod
    def receipt_uploaded(
        filename: Optional[str],
        file_size: int,
        mime_type: Optional[str],
        correlation_id: UUID,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            entity_type="receipt",
            correlation_id=correlation_id,
            description=f"Receipt uploaded: {filename or 'unnamed'}",
            details={
                "filename": filename,
                "file_size_bytes": file_size,
                "mime_type": mime_type,
            },
            actor=actor,
        )

    @staticmethod
    def receipt_rejected(
        filename: Optional[str],
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            correlation_id=correlation_id,
            description=f"Receipt rejected: {filename or 'unnamed'}",
            error_message=reason,
        )

    @staticmethod
    def provider_succeeded(
        provider: str,
        priority: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_SUCCEEDED,
            entity_type="provider",
            entity_id=provider,
            correlation_id=correlation_id,
            description=f"Provider {provider} answered (priority {priority})",
            details={"provider": provider, "priority": priority},
        )

    @staticmethod
    def provider_failed(
        provider: str,
        priority: int,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="provider",
            entity_id=provider,
            correlation_id=correlation_id,
            description=f"Provider {provider} failed (priority {priority})",
            details={"provider": provider, "priority": priority},
            error_message=error_message,
        )

    @staticmethod
    def receipt_unrecognized(
        filename: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UNRECOGNIZED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            correlation_id=correlation_id,
            description=f"No provider recognized receipt: {filename or 'unnamed'}",
        )

    @staticmethod
    def transaction_saved(
        transaction_id: int,
        item: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"Transaction saved: {item} - {amount:.2f}",
            details={
                "item": item,
                "amount": amount,
            },
            actor=actor,
        )

    @staticmethod
    def transactions_cleared(count: int, actor: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"All transactions cleared ({count} removed)",
            details={"removed": count},
            actor=actor,
        )

    @staticmethod
    def user_created(user_id: int, username: str, role: str, actor: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            entity_id=str(user_id),
            description=f"User created: {username} ({role})",
            details={"username": username, "role": role},
            actor=actor,
        )

    @staticmethod
    def user_deleted(user_id: int, removed: bool, actor: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            entity_type="user",
            entity_id=str(user_id),
            description=f"User {user_id} deleted" if removed else f"User {user_id} not found",
            details={"removed": removed},
            actor=actor,
        )

    @staticmethod
    def assistant_answered(
        provider: Optional[str],
        question_length: int,
        actor: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSISTANT_ANSWERED,
            entity_type="assistant",
            description=f"Assistant answered via {provider or 'unknown'}",
            details={"provider": provider, "question_length": question_length},
            actor=actor,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
