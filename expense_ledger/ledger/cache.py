"""
Ledger Cache

Local mirror of one identity's expense records. The remote Ledger API is
authoritative; this cache only ever holds what the remote confirmed.

GUARANTEES:
- Confirm-then-apply: the remote call succeeds before any local change.
  There is no optimistic write, so a client-made id is never exposed.
- One record per id, always (records are keyed by id).
- Wholesale replacement: a load installs the full fetched set or nothing.
  Records of a previous identity never survive an identity change.
- Stale loads are discarded: every load captures a generation number and
  its result is dropped if the generation moved while it was in flight.

Failures never propagate. Each one aborts only its own operation, leaves
the records exactly as they were and sets ``error`` for display.
"""

from typing import Callable, Optional

from expense_ledger.audit import AuditLogger
from expense_ledger.ledger.months import UnparseableDate, resolve_month_for_mutation
from expense_ledger.models.identity import Identity
from expense_ledger.models.record import ExpenseInput, ExpenseRecord
from expense_ledger.services.remote import LedgerRemoteInterface, RemoteFailure


class LedgerCache:
    """
    Records of the currently established identity.

    Administrators have no personal ledger here: loading for an admin (or
    for no identity) leaves the cache empty.
    """

    def __init__(
        self,
        remote: LedgerRemoteInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._remote = remote
        self._audit = audit_logger or AuditLogger()
        self._records: dict[str, ExpenseRecord] = {}
        self._owner_id: Optional[str] = None
        self._generation = 0
        self._loading = False
        self._editing_id: Optional[str] = None
        self._listeners: list[Callable[[], None]] = []
        self.error: Optional[str] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def records(self) -> tuple[ExpenseRecord, ...]:
        return tuple(self._records.values())

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def editing_id(self) -> Optional[str]:
        return self._editing_id

    @property
    def editing_record(self) -> Optional[ExpenseRecord]:
        if self._editing_id is None:
            return None
        return self._records.get(self._editing_id)

    def get(self, record_id: str) -> Optional[ExpenseRecord]:
        return self._records.get(record_id)

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` after every change to records, flags or error."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener()

    def _fail(self, operation: str, error: Exception, message: str) -> None:
        status = error.status if isinstance(error, RemoteFailure) else None
        self._audit.log_remote_failure(operation, str(error), status)
        self.error = message
        self._changed()

    # ------------------------------------------------------------------
    # Identity changes
    # ------------------------------------------------------------------

    def reset(self, identity: Optional[Identity]) -> None:
        """
        Empty the cache for a new identity (or none).

        Any load still in flight becomes stale.
        """
        self._generation += 1
        previous_owner = self._owner_id
        self._owner_id = identity.id if identity is not None and not identity.is_admin else None
        self._records = {}
        self._editing_id = None
        self._loading = False
        self.error = None
        self._audit.log_ledger_cleared(previous_owner, reason="identity_changed")
        self._changed()

    async def load(self, identity: Optional[Identity]) -> None:
        """
        Replace the local set with every record owned by ``identity``.

        On failure the previous set of the same identity is kept.
        """
        if identity is None or identity.is_admin:
            self.reset(identity)
            return

        self._generation += 1
        generation = self._generation
        if self._owner_id != identity.id:
            self._records = {}
            self._editing_id = None
        self._owner_id = identity.id
        self._loading = True
        self.error = None
        self._changed()

        try:
            fetched = await self._remote.list_records(identity.id)
        except RemoteFailure as e:
            if generation != self._generation:
                self._audit.log_stale_load_discarded(identity.id)
                return
            self._loading = False
            self._fail("load", e, "Could not load expenses. Please try again.")
            return

        if generation != self._generation:
            self._audit.log_stale_load_discarded(identity.id)
            return

        self._records = {record.id: record for record in fetched}
        if self._editing_id not in self._records:
            self._editing_id = None
        self._loading = False
        self._audit.log_ledger_loaded(identity.id, len(self._records))
        self._changed()

    # ------------------------------------------------------------------
    # Mutations (confirm-then-apply)
    # ------------------------------------------------------------------

    async def create(
        self,
        data: ExpenseInput,
        fallback_month: str,
        owner_id: str,
    ) -> Optional[ExpenseRecord]:
        """
        Create a record; on success append the server's copy.

        The record is appended whether or not it matches the current month
        filter; deciding visibility is the view's job.
        """
        try:
            month = resolve_month_for_mutation(data.date, fallback_month)
        except UnparseableDate as e:
            self.error = str(e)
            self._changed()
            return None

        owner_at_start = self._owner_id
        try:
            created = await self._remote.create_record(data, month=month, owner_id=owner_id)
        except RemoteFailure as e:
            self._fail("create", e, "Could not add the expense.")
            return None

        if self._owner_id != owner_at_start:
            return created

        self._records[created.id] = created
        self.error = None
        self._audit.log_record_created(created.id, created.owner_id, str(created.amount), created.month)
        self._changed()
        return created

    async def update(
        self,
        record: ExpenseRecord,
        fallback_month: Optional[str] = None,
    ) -> Optional[ExpenseRecord]:
        """
        Submit a full replacement of ``record``.

        The month is recomputed from the date; a blank date keeps
        ``fallback_month`` (default: the record's current month).
        """
        fallback = record.month if fallback_month is None else fallback_month
        try:
            month = resolve_month_for_mutation(record.date, fallback)
        except UnparseableDate as e:
            self.error = str(e)
            self._changed()
            return None

        owner_id = record.owner_id or self._owner_id or ""
        candidate = record.with_changes(month=month, owner_id=owner_id)

        owner_at_start = self._owner_id
        try:
            updated = await self._remote.replace_record(candidate)
        except RemoteFailure as e:
            self._fail("update", e, "Could not update the expense.")
            return None

        if self._owner_id != owner_at_start:
            return updated

        if updated.id in self._records:
            self._records[updated.id] = updated
        if self._editing_id == updated.id:
            self._editing_id = None
        self.error = None
        self._audit.log_record_updated(updated.id, updated.owner_id, updated.month)
        self._changed()
        return updated

    async def remove(self, record_id: str) -> bool:
        """Delete a record; clears the edit pointer if it pointed at it."""
        owner_at_start = self._owner_id
        try:
            await self._remote.delete_record(record_id)
        except RemoteFailure as e:
            self._fail("remove", e, "Could not delete the expense.")
            return False

        if self._owner_id != owner_at_start:
            return True

        self._records.pop(record_id, None)
        if self._editing_id == record_id:
            self._editing_id = None
        self.error = None
        self._audit.log_record_deleted(record_id)
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Edit pointer
    # ------------------------------------------------------------------

    def begin_edit(self, record_id: str) -> bool:
        """Mark a cached record as being edited."""
        if record_id not in self._records:
            return False
        self._editing_id = record_id
        self._changed()
        return True

    def cancel_edit(self) -> None:
        if self._editing_id is not None:
            self._editing_id = None
            self._changed()

    def clear_error(self) -> None:
        self.error = None
