"""
Administration Console

Lets an administrator manage identities and any identity's records.

CRITICAL: Every operation first checks that the current session belongs
to an administrator. The check is repeated per call because the session
can end between calls.

Per-user record work goes through an ordinary LedgerCache opened for the
target identity, so admin edits follow the same confirm-then-apply rules
and the same month derivation as the owner's own edits.
"""

from typing import Optional

from expense_ledger.audit import AuditLogger
from expense_ledger.ledger.cache import LedgerCache
from expense_ledger.models.identity import (
    Identity,
    RegistrationProfile,
    Role,
    identity_to_wire,
)
from expense_ledger.services.remote import (
    IdentityRemoteInterface,
    LedgerRemoteInterface,
    RemoteFailure,
)
from expense_ledger.session.lifecycle import SessionLifecycle


class PermissionDenied(Exception):
    """The current session is not an administrator's."""
    pass


def require_admin(session: SessionLifecycle) -> Identity:
    """
    Return the administrator identity or raise.

    Raises:
        PermissionDenied: No session, or a standard user's session
    """
    if not session.is_authenticated or not session.is_admin:
        raise PermissionDenied("Administrator session required")
    return session.identity


class AdminConsole:
    """Identity management plus per-user ledgers."""

    def __init__(
        self,
        session: SessionLifecycle,
        identity_remote: IdentityRemoteInterface,
        ledger_remote: LedgerRemoteInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._session = session
        self._identities_remote = identity_remote
        self._ledger_remote = ledger_remote
        self._audit = audit_logger or AuditLogger()
        self._identities: dict[str, Identity] = {}
        self._ledgers: dict[str, LedgerCache] = {}
        self.error: Optional[str] = None

        session.subscribe(self._on_identity_changed)

    @property
    def identities(self) -> list[Identity]:
        return list(self._identities.values())

    def ledger_for(self, identity_id: str) -> Optional[LedgerCache]:
        """The ledger opened for ``identity_id``, if any."""
        return self._ledgers.get(identity_id)

    def _on_identity_changed(self, identity: Optional[Identity]) -> None:
        # Whatever was loaded belonged to the previous session
        self._identities = {}
        self._ledgers = {}
        self.error = None

    def _fail(self, operation: str, error: RemoteFailure, message: str) -> None:
        self._audit.log_remote_failure(operation, str(error), error.status)
        self.error = message

    # ------------------------------------------------------------------
    # Identities
    # ------------------------------------------------------------------

    async def load_identities(self) -> list[Identity]:
        require_admin(self._session)
        try:
            fetched = await self._identities_remote.list_identities()
        except RemoteFailure as e:
            self._fail("list_identities", e, "Could not load users.")
            return self.identities

        self._identities = {identity.id: identity for identity in fetched}
        self.error = None
        return self.identities

    async def create_identity(
        self,
        profile: RegistrationProfile,
        role: Role = Role.STANDARD,
    ) -> Optional[Identity]:
        require_admin(self._session)
        try:
            created = await self._identities_remote.create_identity(profile, role)
        except RemoteFailure as e:
            self._fail("create_identity", e, "Could not create the user.")
            return None

        self._identities[created.id] = created
        self.error = None
        self._audit.log_identity_created(created.id, created.role.value)
        return created

    async def update_identity(
        self,
        identity: Identity,
        password: Optional[str] = None,
    ) -> Optional[Identity]:
        """
        Replace an identity's profile.

        A blank ``password`` is not sent, so the stored one is kept.
        """
        require_admin(self._session)
        changes = identity_to_wire(identity)
        changes.pop("id")
        password_changed = bool(password and password.strip())
        if password_changed:
            changes["password"] = password

        try:
            updated = await self._identities_remote.update_identity(identity.id, changes)
        except RemoteFailure as e:
            self._fail("update_identity", e, "Could not update the user.")
            return None

        self._identities[updated.id] = updated
        self.error = None
        self._audit.log_identity_updated(updated.id, password_changed)
        return updated

    async def delete_identity(self, identity_id: str) -> bool:
        """
        Delete an identity, then every record it owns.

        If a record deletion fails, the identity is already gone; the
        remaining records stay on the remote and ``error`` is set.
        """
        require_admin(self._session)
        try:
            await self._identities_remote.delete_identity(identity_id)
        except RemoteFailure as e:
            self._fail("delete_identity", e, "Could not delete the user.")
            return False

        self._identities.pop(identity_id, None)
        self._ledgers.pop(identity_id, None)

        removed = 0
        try:
            # Filtered locally so records with a legacy owner field match too
            records = await self._ledger_remote.list_all_records()
            owned = [record for record in records if record.owner_id == identity_id]
            for record in owned:
                await self._ledger_remote.delete_record(record.id)
                removed += 1
        except RemoteFailure as e:
            self._fail("delete_identity_records", e, "User deleted, but some expenses were not removed.")
            self._audit.log_identity_deleted(identity_id, removed)
            return True

        self.error = None
        self._audit.log_identity_deleted(identity_id, removed)
        return True

    # ------------------------------------------------------------------
    # Per-user ledgers
    # ------------------------------------------------------------------

    async def open_ledger(self, identity_id: str) -> LedgerCache:
        """
        Load ``identity_id``'s records into a dedicated LedgerCache.

        Load failures are reported on the returned cache's ``error``.
        """
        require_admin(self._session)
        target = self._identities.get(identity_id) or Identity(id=identity_id)
        cache = self._ledgers.get(identity_id)
        if cache is None:
            cache = LedgerCache(self._ledger_remote, self._audit)
            self._ledgers[identity_id] = cache
        await cache.load(target)
        return cache
