"""
Audit Logger

DESIGN DECISION: Every significant session and ledger action is logged.
This provides:
1. Traceability of record mutations per owner
2. Debugging capability when the remote API misbehaves
3. A record of session expiry and renewal decisions

The audit logger:
- Is synchronous, because renewal ticks and visibility callbacks
  are not coroutines
- Only writes structured local logs; there is no audit persistence backend
"""

from datetime import datetime
from typing import Optional

import structlog

from expense_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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


class AuditLogger:
    """
    Central audit logging service.

    Components receive one instance by injection; tests pass their own
    to inspect ``events``.
    """

    def __init__(self, name: str = "expense_ledger.audit", keep_events: bool = False):
        """
        Initialize audit logger.

        Args:
            name: Logger name used for the structlog logger.
            keep_events: Also keep every logged event in ``events``.
        """
        self._logger = structlog.get_logger(name)
        self._keep_events = keep_events
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        if self._keep_events:
            self.events.append(event)

        log_dict = event.to_log_dict()

        if event.severity is AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity is AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    # Session lifecycle

    def log_session_established(self, identity_id: str, role: str, via: str) -> None:
        self.log(AuditEventBuilder.session_established(identity_id, role, via))

    def log_session_restored(self, identity_id: str, expires_at: datetime) -> None:
        self.log(AuditEventBuilder.session_restored(identity_id, expires_at))

    def log_session_renewed(self, identity_id: str, expires_at: datetime, trigger: str) -> None:
        self.log(AuditEventBuilder.session_renewed(identity_id, expires_at, trigger))

    def log_session_ended(self, identity_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.session_ended(identity_id))

    def log_session_expired(self, identity_id: Optional[str], reason: str) -> None:
        self.log(AuditEventBuilder.session_expired(identity_id, reason))

    def log_session_corrupt(self, reason: str) -> None:
        self.log(AuditEventBuilder.session_corrupt(reason))

    def log_login_failed(self, email: str, reason: str) -> None:
        self.log(AuditEventBuilder.login_failed(email, reason))

    def log_ambiguous_credentials(self, email: str, match_count: int, chosen_id: str) -> None:
        self.log(AuditEventBuilder.ambiguous_credentials(email, match_count, chosen_id))

    # Ledger

    def log_ledger_loaded(self, owner_id: str, record_count: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(owner_id, record_count))

    def log_ledger_cleared(self, owner_id: Optional[str], reason: str) -> None:
        self.log(AuditEventBuilder.ledger_cleared(owner_id, reason))

    def log_stale_load_discarded(self, owner_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.stale_load_discarded(owner_id))

    def log_record_created(self, record_id: str, owner_id: str, amount: str, month: str) -> None:
        self.log(AuditEventBuilder.record_created(record_id, owner_id, amount, month))

    def log_record_updated(self, record_id: str, owner_id: str, month: str) -> None:
        self.log(AuditEventBuilder.record_updated(record_id, owner_id, month))

    def log_record_deleted(self, record_id: str) -> None:
        self.log(AuditEventBuilder.record_deleted(record_id))

    # Administration

    def log_identity_created(self, identity_id: str, role: str) -> None:
        self.log(AuditEventBuilder.identity_created(identity_id, role))

    def log_identity_updated(self, identity_id: str, password_changed: bool) -> None:
        self.log(AuditEventBuilder.identity_updated(identity_id, password_changed))

    def log_identity_deleted(self, identity_id: str, records_removed: int) -> None:
        self.log(AuditEventBuilder.identity_deleted(identity_id, records_removed))

    # Failures

    def log_remote_failure(
        self,
        operation: str,
        error_message: str,
        status: Optional[int] = None,
    ) -> None:
        self.log(AuditEventBuilder.remote_failure(operation, error_message, status))

    def log_validation_failed(self, field: str, error_message: str) -> None:
        self.log(AuditEventBuilder.validation_failed(field, error_message))
