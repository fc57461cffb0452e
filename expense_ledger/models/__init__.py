"""
Data Models Package

This package contains all Pydantic models used by the expense ledger.
Remote payloads are normalized into these models at the API boundary.
"""

from expense_ledger.models.record import (
    ExpenseInput,
    ExpenseRecord,
    record_from_wire,
    record_to_wire,
)
from expense_ledger.models.identity import (
    Credentials,
    Identity,
    RegistrationProfile,
    Role,
    SessionRecord,
    identity_from_wire,
    identity_to_wire,
    profile_to_wire,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "ExpenseInput",
    "ExpenseRecord",
    "record_from_wire",
    "record_to_wire",
    # Identity models
    "Credentials",
    "Identity",
    "RegistrationProfile",
    "Role",
    "SessionRecord",
    "identity_from_wire",
    "identity_to_wire",
    "profile_to_wire",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
