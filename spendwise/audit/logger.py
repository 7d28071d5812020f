"""
Audit Logger

Every significant action in the system is logged:
1. Complete traceability of uploads and provider failover
2. Debugging capability
3. Accountability for administrative changes

The audit logger:
- Is async so callers can await it inside request handlers
- Writes structured events through structlog
- Supports correlation IDs to trace related events
"""

import logging
from uuid import UUID, uuid4

import structlog

from spendwise.models.audit import AuditEvent, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structured logs to stderr at the given level."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured log under the ``spendwise.audit`` logger,
    at a level matching their severity. Recent events are also kept in
    memory so they can be inspected (mostly by tests).
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("spendwise.audit")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Recently logged events, oldest first."""
        return list(self._history)

    async def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[: len(self._history) - self._history_size]

    def events_for(self, correlation_id: UUID) -> list[AuditEvent]:
        """All remembered events of one correlated flow."""
        return [event for event in self._history if event.correlation_id == correlation_id]


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a receipt upload).
    Pass it through all subsequent operations.
    """
    return uuid4()
