"""
In-Memory Remote Implementation

Keeps records and identities in process, assigning ids the way the remote
API does (sequential, as text). Used for tests and for running without
an API (``LEDGER_API_BACKEND=memory``).

``fail_operations`` makes the named operations raise RemoteFailure, which
is how tests exercise the confirm-then-apply failure paths.
"""

from typing import Any, Iterable, Optional

from expense_ledger.models.identity import (
    Identity,
    RegistrationProfile,
    Role,
    identity_from_wire,
    identity_to_wire,
    profile_to_wire,
)
from expense_ledger.models.record import (
    ExpenseInput,
    ExpenseRecord,
    record_from_wire,
    record_to_wire,
)
from expense_ledger.services.remote.interface import (
    IdentityRemoteInterface,
    LedgerRemoteInterface,
    NotFoundError,
    RemoteFailure,
)


class _FailureSwitch:
    def __init__(self) -> None:
        self.fail_operations: set[str] = set()
        self.calls: list[str] = []

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_operations:
            raise RemoteFailure(f"{operation} failed with status 500", status=500)


class InMemoryLedgerRemote(_FailureSwitch, LedgerRemoteInterface):
    """Ledger API backed by a dict keyed by record id."""

    def __init__(self, records: Optional[Iterable[ExpenseRecord]] = None):
        super().__init__()
        self._records: dict[str, dict[str, Any]] = {}
        self._sequence = 0
        for record in records or []:
            self._records[record.id] = record_to_wire(record)
            if record.id.isdigit():
                self._sequence = max(self._sequence, int(record.id))

    def _next_id(self) -> str:
        self._sequence += 1
        return str(self._sequence)

    @property
    def stored(self) -> list[ExpenseRecord]:
        """Everything currently stored, for assertions."""
        return [record_from_wire(payload) for payload in self._records.values()]

    async def list_records(self, owner_id: str) -> list[ExpenseRecord]:
        self._enter("list_records")
        return [record for record in self.stored if record.owner_id == owner_id]

    async def list_all_records(self) -> list[ExpenseRecord]:
        self._enter("list_all_records")
        return self.stored

    async def create_record(
        self,
        draft: ExpenseInput,
        month: str,
        owner_id: str,
    ) -> ExpenseRecord:
        self._enter("create_record")
        payload = record_to_wire(draft, month=month, owner_id=owner_id)
        payload["id"] = self._next_id()
        self._records[payload["id"]] = payload
        return record_from_wire(payload)

    async def replace_record(self, record: ExpenseRecord) -> ExpenseRecord:
        self._enter("replace_record")
        if record.id not in self._records:
            raise NotFoundError("replace_record: not found", status=404)
        self._records[record.id] = record_to_wire(record)
        return record_from_wire(self._records[record.id])

    async def delete_record(self, record_id: str) -> None:
        self._enter("delete_record")
        if self._records.pop(record_id, None) is None:
            raise NotFoundError("delete_record: not found", status=404)


class InMemoryIdentityRemote(_FailureSwitch, IdentityRemoteInterface):
    """Identity API backed by a list of wire payloads (passwords included)."""

    def __init__(self, identities: Optional[Iterable[dict[str, Any]]] = None):
        super().__init__()
        self._identities: list[dict[str, Any]] = []
        self._sequence = 0
        for payload in identities or []:
            self._identities.append(dict(payload))
            identity_id = str(payload.get("id", ""))
            if identity_id.isdigit():
                self._sequence = max(self._sequence, int(identity_id))

    def _find(self, identity_id: str) -> dict[str, Any]:
        for payload in self._identities:
            if str(payload.get("id")) == identity_id:
                return payload
        raise NotFoundError(f"identity {identity_id}: not found", status=404)

    async def find_by_credentials(self, email: str, password: str) -> list[Identity]:
        self._enter("find_by_credentials")
        return [
            identity_from_wire(payload)
            for payload in self._identities
            if payload.get("email") == email and payload.get("password") == password
        ]

    async def create_identity(
        self,
        profile: RegistrationProfile,
        role: Role = Role.STANDARD,
    ) -> Identity:
        self._enter("create_identity")
        self._sequence += 1
        payload = {**profile_to_wire(profile, role), "id": str(self._sequence)}
        self._identities.append(payload)
        return identity_from_wire(payload)

    async def list_identities(self) -> list[Identity]:
        self._enter("list_identities")
        return [identity_from_wire(payload) for payload in self._identities]

    async def update_identity(self, identity_id: str, changes: dict[str, Any]) -> Identity:
        self._enter("update_identity")
        stored = self._find(identity_id)
        password = changes.get("password") or stored.get("password")
        stored.clear()
        stored.update({**changes, "id": identity_id, "password": password})
        return identity_from_wire(stored)

    async def delete_identity(self, identity_id: str) -> None:
        self._enter("delete_identity")
        self._identities.remove(self._find(identity_id))


def seed_identity(identity: Identity, password: str) -> dict[str, Any]:
    """Build a stored identity payload for ``InMemoryIdentityRemote``."""
    return {**identity_to_wire(identity), "password": password}
