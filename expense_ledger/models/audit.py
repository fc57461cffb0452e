"""
Audit Models for Expense Ledger

Every significant session and ledger action is logged as a structured event.
This provides:
1. Traceability of who changed which record and when
2. Debugging information when a remote call fails
3. Visibility into session expiry and renewal

DESIGN DECISION: Events are plain data. Rendering them (structlog today)
is the audit logger's job, so builders never touch the logging setup.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session lifecycle
    SESSION_ESTABLISHED = "session_established"
    SESSION_RESTORED = "session_restored"
    SESSION_RENEWED = "session_renewed"
    SESSION_ENDED = "session_ended"
    SESSION_EXPIRED = "session_expired"
    SESSION_CORRUPT = "session_corrupt"
    LOGIN_FAILED = "login_failed"
    AMBIGUOUS_CREDENTIALS = "ambiguous_credentials"

    # Ledger
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_CLEARED = "ledger_cleared"
    STALE_LOAD_DISCARDED = "stale_load_discarded"
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Administration
    IDENTITY_CREATED = "identity_created"
    IDENTITY_UPDATED = "identity_updated"
    IDENTITY_DELETED = "identity_deleted"

    # Failures
    REMOTE_FAILURE = "remote_failure"
    VALIDATION_FAILED = "validation_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'record', 'identity', 'session')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

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
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created(record_id, owner_id, amount)
        event = AuditEventBuilder.session_expired(identity_id, reason)
    """

    @staticmethod
    def session_established(identity_id: str, role: str, via: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ESTABLISHED,
            entity_type="identity",
            entity_id=identity_id,
            description=f"Session established via {via}",
            details={"role": role, "via": via},
        )

    @staticmethod
    def session_restored(identity_id: str, expires_at: datetime) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="identity",
            entity_id=identity_id,
            description="Session restored from durable record",
            details={"expires_at": expires_at.isoformat()},
        )

    @staticmethod
    def session_renewed(identity_id: str, expires_at: datetime, trigger: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RENEWED,
            severity=AuditSeverity.DEBUG,
            entity_type="identity",
            entity_id=identity_id,
            description=f"Session renewed ({trigger})",
            details={"expires_at": expires_at.isoformat(), "trigger": trigger},
        )

    @staticmethod
    def session_ended(identity_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            entity_type="identity",
            entity_id=identity_id,
            description="Session cleared",
        )

    @staticmethod
    def session_expired(identity_id: Optional[str], reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_EXPIRED,
            severity=AuditSeverity.WARNING,
            entity_type="identity",
            entity_id=identity_id,
            description="Session expired",
            details={"reason": reason},
        )

    @staticmethod
    def session_corrupt(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_CORRUPT,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description="Durable session record is unusable",
            error_message=reason,
        )

    @staticmethod
    def login_failed(email: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="identity",
            description="Login failed",
            details={"email": email},
            error_message=reason,
        )

    @staticmethod
    def ambiguous_credentials(email: str, match_count: int, chosen_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMBIGUOUS_CREDENTIALS,
            severity=AuditSeverity.WARNING,
            entity_type="identity",
            entity_id=chosen_id,
            description="Several identities share these credentials; using the first",
            details={"email": email, "match_count": match_count},
        )

    @staticmethod
    def ledger_loaded(owner_id: str, record_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            entity_type="ledger",
            entity_id=owner_id,
            description=f"Loaded {record_count} records",
            details={"record_count": record_count},
        )

    @staticmethod
    def ledger_cleared(owner_id: Optional[str], reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            entity_id=owner_id,
            description="Ledger cleared",
            details={"reason": reason},
        )

    @staticmethod
    def stale_load_discarded(owner_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_LOAD_DISCARDED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            entity_id=owner_id,
            description="Ledger load resolved after the identity changed; discarded",
        )

    @staticmethod
    def record_created(record_id: str, owner_id: str, amount: str, month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type="record",
            entity_id=record_id,
            description=f"Record created for month {month}",
            details={"owner_id": owner_id, "amount": amount, "month": month},
        )

    @staticmethod
    def record_updated(record_id: str, owner_id: str, month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type="record",
            entity_id=record_id,
            description="Record updated",
            details={"owner_id": owner_id, "month": month},
        )

    @staticmethod
    def record_deleted(record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type="record",
            entity_id=record_id,
            description="Record deleted",
        )

    @staticmethod
    def identity_created(identity_id: str, role: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IDENTITY_CREATED,
            entity_type="identity",
            entity_id=identity_id,
            description="Identity created",
            details={"role": role},
        )

    @staticmethod
    def identity_updated(identity_id: str, password_changed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IDENTITY_UPDATED,
            entity_type="identity",
            entity_id=identity_id,
            description="Identity updated",
            details={"password_changed": password_changed},
        )

    @staticmethod
    def identity_deleted(identity_id: str, records_removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IDENTITY_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="identity",
            entity_id=identity_id,
            description="Identity and owned records deleted",
            details={"records_removed": records_removed},
        )

    @staticmethod
    def remote_failure(operation: str, error_message: str, status: Optional[int] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_FAILURE,
            severity=AuditSeverity.ERROR,
            description=f"Remote call failed: {operation}",
            details={"operation": operation, "status": status},
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(field: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Input rejected: {field}",
            details={"field": field},
            error_message=error_message,
        )
